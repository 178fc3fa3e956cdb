"""
URL validation and SSRF prevention for Pressed.

Remote themes are the only network input; every URL fetched for them, and
every redirect hop on the way, is checked against the rules below before a
request is made.
"""

import ipaddress
import logging
import re
import socket
from typing import List, Optional, Set, Tuple, Union
from urllib.parse import urljoin, urlparse

import requests

logger = logging.getLogger('Pressed.url_validator')

USER_AGENT = 'Pressed/1.0.0 (Static Site Generator)'

REDIRECT_CODES = {301, 302, 303, 307, 308}


class URLValidator:
    """
    Rejects URLs that point at private, loopback or metadata addresses.
    """

    # Allowed URL schemes
    ALLOWED_SCHEMES: Set[str] = {'http', 'https'}

    # Private/Reserved IP ranges to block (RFC 1918, RFC 3927, RFC 6598, etc.)
    BLOCKED_IP_RANGES: List[str] = [
        '0.0.0.0/8',          # "This network"
        '10.0.0.0/8',         # Private network (RFC 1918)
        '100.64.0.0/10',      # Carrier-grade NAT (RFC 6598)
        '127.0.0.0/8',        # Loopback
        '169.254.0.0/16',     # Link-local (RFC 3927)
        '172.16.0.0/12',      # Private network (RFC 1918)
        '192.0.0.0/24',       # IETF Protocol Assignments (RFC 6890)
        '192.0.2.0/24',       # Documentation (RFC 5737)
        '192.168.0.0/16',     # Private network (RFC 1918)
        '198.18.0.0/15',      # Benchmark (RFC 2544)
        '198.51.100.0/24',    # Documentation (RFC 5737)
        '203.0.113.0/24',     # Documentation (RFC 5737)
        '224.0.0.0/4',        # Multicast
        '240.0.0.0/4',        # Reserved
        # IPv6 ranges
        '::1/128',            # IPv6 loopback
        '::/128',             # IPv6 unspecified
        '::ffff:0:0/96',      # IPv4-mapped IPv6
        'fe80::/10',          # IPv6 link-local
        'fc00::/7',           # IPv6 unique local
        'ff00::/8',           # IPv6 multicast
    ]

    BLOCKED_HOSTNAMES: Set[str] = {
        'localhost',
        'localhost.localdomain',
        'ip6-localhost',
        'ip6-loopback',
        'metadata.google.internal',
        '169.254.169.254',
    }

    SUSPICIOUS_PATTERNS = [
        r'%2f%2f',
        r'%5c%5c',
        r'\.\./',
        r'%2e%2e%2f',
        r'javascript:',
    ]

    def __init__(self, max_redirects: int = 5):
        self.max_redirects = max_redirects
        self._blocked_networks = [ipaddress.ip_network(cidr) for cidr in self.BLOCKED_IP_RANGES]

    def validate_url(self, url: str, allowed_domains: Optional[Set[str]] = None) -> Tuple[bool, str]:
        """
        Validate a URL for SSRF safety.

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            parsed = urlparse(url)
        except ValueError as e:
            return False, f"Invalid URL: {e}"

        if not parsed.scheme or not parsed.netloc:
            return False, "Invalid URL format"
        if parsed.scheme.lower() not in self.ALLOWED_SCHEMES:
            return False, f"Unsupported URL scheme: {parsed.scheme}"
        if '@' in parsed.netloc:
            return False, "Credentials in URL are not allowed"

        hostname = (parsed.hostname or '').lower()
        if not hostname:
            return False, "Invalid hostname in URL"
        if hostname in self.BLOCKED_HOSTNAMES:
            return False, f"Blocked hostname: {hostname}"

        if allowed_domains and not any(
                hostname == domain.lower() or hostname.endswith('.' + domain.lower())
                for domain in allowed_domains):
            return False, f"Domain not in allowlist: {hostname}"

        url_lower = url.lower()
        for pattern in self.SUSPICIOUS_PATTERNS:
            if re.search(pattern, url_lower):
                return False, "URL contains suspicious patterns"

        try:
            for ip_str in self._resolve_hostname(hostname):
                if not self._is_ip_allowed(ip_str):
                    return False, f"Blocked IP address: {ip_str}"
        except socket.gaierror:
            return False, f"Cannot resolve hostname: {hostname}"
        except OSError as e:
            return False, f"DNS resolution error: {e}"

        return True, "URL is valid"

    def _resolve_hostname(self, hostname: str) -> List[str]:
        addr_info = socket.getaddrinfo(hostname, None, family=socket.AF_UNSPEC, type=socket.SOCK_STREAM)
        return sorted(set(info[4][0] for info in addr_info))

    def _is_ip_allowed(self, ip_str: str) -> bool:
        try:
            ip = ipaddress.ip_address(ip_str.split('%', 1)[0])
        except ValueError:
            return False
        return not any(ip in network for network in self._blocked_networks)


class SafeRequestor:
    """
    HTTP GET that validates the URL, and each redirect target, before
    requesting it.
    """

    def __init__(self, validator: URLValidator = None, session=None):
        self.validator = validator or URLValidator()
        self.session = session

    def safe_get(self, url: str, allowed_domains: Set[str] = None,
                 **kwargs) -> Tuple[bool, Union[requests.Response, str]]:
        """
        Make a safe GET request.

        With allow_redirects=True redirects are followed by hand, up to the
        validator's max_redirects, and every hop is validated.

        Returns:
            Tuple of (success, response_or_error_message)
        """
        follow = kwargs.pop('allow_redirects', False)
        kwargs.setdefault('timeout', 30)
        headers = dict(kwargs.pop('headers', None) or {})
        headers.setdefault('User-Agent', USER_AGENT)
        getter = self.session.get if self.session else requests.get

        current = url
        for _ in range(self.validator.max_redirects + 1):
            is_valid, error_msg = self.validator.validate_url(current, allowed_domains)
            if not is_valid:
                return False, f"URL validation failed: {error_msg}"
            try:
                response = getter(current, headers=headers, allow_redirects=False, **kwargs)
            except requests.exceptions.RequestException as e:
                return False, f"HTTP request failed: {e}"

            location = response.headers.get('Location')
            if follow and response.status_code in REDIRECT_CODES and location:
                response.close()
                current = urljoin(current, location)
                logger.debug(f"Following redirect to {current}")
                continue

            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                return False, f"HTTP request failed: {e}"
            return True, response

        return False, f"Too many redirects (more than {self.validator.max_redirects})"
