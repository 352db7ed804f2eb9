"""
Data Validators - Transform Layer

Pure checks on feed pages and IP addresses.
"""

import ipaddress
from typing import Optional, Sequence
from ..coreutils.time import parse_iso
from ..extract.schemas import FeedUser
import logging

logger = logging.getLogger(__name__)

# Reserved IPv4 blocks that are never sent to the geolocation API
PRIVATE_IPV4_NETWORKS = tuple(
    ipaddress.IPv4Network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "0.0.0.0/8",
    )
)


def is_private_ip(ip: Optional[str]) -> bool:
    """
    Check if an IP address is private or invalid

    Only IPv4 reserved blocks are checked; IPv6 addresses pass through.

    Args:
        ip: IP address to validate

    Returns:
        bool: True if the address is absent, unparseable, or in a reserved block
    """
    if not ip:
        return True

    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return True

    if address.version != 4:
        return False

    return any(address in network for network in PRIVATE_IPV4_NETWORKS)


def is_descending_recency(users: Sequence[FeedUser]) -> bool:
    """
    Check that a page is ordered most-recent-first by createdAt

    Incremental sync relies on this ordering. Users without a parseable
    createdAt are ignored by the check.

    Returns:
        bool: False only if two comparable users are out of order
    """
    previous = None
    for user in users:
        if not user.created_at:
            continue
        try:
            created = parse_iso(user.created_at)
        except ValueError:
            continue

        if previous is not None:
            try:
                out_of_order = created > previous
            except TypeError:
                # naive vs aware timestamps
                continue
            if out_of_order:
                logger.warning(
                    f"Feed ordering violated at user {user.user_id}: "
                    f"{user.created_at} is newer than the entry before it"
                )
                return False
        previous = created
    return True
