# bedrockstat - A Minecraft Bedrock server status checker
# Copyright (C) 2016-2023 Lloyd Dilley, Felix Ern (MindSolve)
# http://www.dilley.me/
#
# Secondary optimization and customization are carried out by @molanp.
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program; if not, write to the Free Software Foundation, Inc.,
# 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301 USA.
import ipaddress
import logging
import re
import socket

import dns.exception
import dns.resolver
import idna

from .errors import ResolutionError

logger = logging.getLogger(__name__)

DNS_LIFETIME = 5
"""upper bound in seconds for one DNS lookup"""

_DOMAIN_PATTERN = re.compile(
    r"^(?!-)(?:[A-Za-z0-9-]{1,63}\.)+(?:[A-Za-z]{2,})$|^(xn--[A-Za-z0-9-]{1,63})\.[A-Za-z]{2,}$"
)


def is_ipv4(address: str) -> bool:
    try:
        return isinstance(ipaddress.ip_address(address), ipaddress.IPv4Address)
    except ValueError:
        return False


def is_ipv6(address: str) -> bool:
    try:
        return isinstance(ipaddress.ip_address(address), ipaddress.IPv6Address)
    except ValueError:
        return False


def is_domain(address: str) -> bool:
    """
    Check whether the address is a (possibly internationalized) domain name.

    :param address: The address to check.
    :return: True for `localhost` and names that encode to a valid punycode domain.
    """
    if address.lower() == "localhost":
        return True
    try:
        punycode_address = idna.encode(address).decode("utf-8")
    except idna.IDNAError:
        return False
    return bool(_DOMAIN_PATTERN.match(punycode_address))


def get_ip_type(address: str) -> str:
    if is_ipv4(address):
        return "IPv4"
    if is_ipv6(address):
        return "IPv6"
    if is_domain(address):
        return "Domain"
    return "Unknown"


def _lookup(domain: str, use_ipv6: bool) -> str | None:
    """Look the domain up over DNS, returns None if DNS has no usable answer."""
    rdtype = "AAAA" if use_ipv6 else "A"
    try:
        resolver = dns.resolver.Resolver()
        response = resolver.resolve(domain, rdtype, lifetime=DNS_LIFETIME)
    except dns.exception.DNSException as e:
        logger.debug("DNS %s lookup of %s failed: %s", rdtype, domain, e)
        return None
    for rdata in response:
        return str(rdata.address)
    return None


def _system_lookup(host: str, port: int, family: int) -> str:
    try:
        infos = socket.getaddrinfo(host, port, family, socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError(f"could not resolve {host!r}: {e}") from e
    if not infos:
        raise ResolutionError(f"could not resolve {host!r}")
    return infos[0][4][0]


def resolve(host: str, port: int, use_ipv6: bool = False) -> tuple[int, tuple[str, int]]:
    """
    Resolve the host to a socket address.

    IP literals are used as they are, `localhost` maps to the loopback address.
    Domain names are looked up over DNS (A record, or AAAA if `use_ipv6`), then
    with the system resolver for names DNS cannot answer (e.g. hosts file).
    Anything else, such as single-label LAN or container names, goes to the
    system resolver directly.

    :return: The address family and the `(ip, port)` to connect to.
    """
    if not 0 < port < 65536:
        raise ResolutionError(f"port {port} is out of range")
    if not host:
        raise ResolutionError("no host given")

    family = socket.AF_INET6 if use_ipv6 else socket.AF_INET
    # fully qualified names may end with the root label
    name = host[:-1] if host.endswith(".") else host
    ip_type = get_ip_type(name)

    if ip_type == "IPv4":
        return socket.AF_INET, (name, port)
    if ip_type == "IPv6":
        return socket.AF_INET6, (name, port)
    if ip_type == "Unknown":
        address = _system_lookup(host, port, family)
        logger.debug("resolved %s to %s", host, address)
        return family, (address, port)

    if name.lower() == "localhost":
        return family, ("::1" if use_ipv6 else "127.0.0.1", port)

    domain = idna.encode(name).decode("ascii")
    address = _lookup(domain, use_ipv6)
    if address is None:
        address = _system_lookup(domain, port, family)

    logger.debug("resolved %s to %s", host, address)
    return family, (address, port)
