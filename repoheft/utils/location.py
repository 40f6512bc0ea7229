"""Classify a location string as a repository or an account"""

from ..core.exceptions import InvalidLocationError
from ..core.models import Location, LocationKind

ACCOUNT_SEGMENT_COUNT = 5
ACCOUNT_KINDS = {
    'users': LocationKind.USER,
    'orgs': LocationKind.ORG,
}


def classify_location(raw: str, hosting_domain: str = "github.com") -> Location:
    """
    Decide whether a location denotes a single repository or an account

    'https://github.com/orgs/acme' and 'https://github.com/users/acme' split
    into exactly five '/'-delimited segments with 'orgs' or 'users' fourth;
    those are accounts. Anything else mentioning the hosting domain is a
    repository.

    Raises:
        InvalidLocationError: if the location is empty or matches neither form
    """
    location = (raw or "").strip()
    if not location:
        raise InvalidLocationError("No repository or account location given")

    segments = location.split('/')
    if len(segments) == ACCOUNT_SEGMENT_COUNT and segments[3] in ACCOUNT_KINDS:
        owner = segments[4]
        if not owner:
            raise InvalidLocationError(f"Account location has no account name: {location}")
        return Location(raw=location, kind=ACCOUNT_KINDS[segments[3]], owner=owner)

    if hosting_domain in location:
        return Location(raw=location, kind=LocationKind.REPOSITORY)

    raise InvalidLocationError(f"Not a {hosting_domain} repository or account URL: {location}")
