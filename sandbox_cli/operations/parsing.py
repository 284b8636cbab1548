"""Parsing of command-line values."""

from typing import Any, Dict, List

_STR_TO_BOOL = {
    'true': True,
    't': True,
    'y': True,
    'yes': True,
    'false': False,
    'f': False,
    'n': False,
    'no': False,
}


def parse_hostname_csv(csv: str) -> List[str]:
    """Split a comma separated hostname list, normalized to lower case."""
    hostnames = (hn.strip().lower() for hn in csv.split(','))
    return [hn for hn in hostnames if hn]


def parse_to_boolean(value: str) -> bool:
    key = value.strip().lower()
    if key not in _STR_TO_BOOL:
        raise ValueError(f"unable to determine boolean from input: {value} please use y/n")
    return _STR_TO_BOOL[key]


def parse_property_specifier(property_specifier: str) -> Dict[str, Any]:
    """
    Parse `<property_id | hostname>[:version]`.

    Returns:
        {"propertyId": ...} when the specifier is numeric, else {"hostname": ...},
        plus "propertyVersion" when a version was given.

    Raises:
        ValueError: If the version is not an integer greater than zero
    """
    if ':' in property_specifier:
        spec, version = (s.strip().lower() for s in property_specifier.split(':', 1))
    else:
        spec, version = property_specifier.strip().lower(), None

    if not spec:
        raise ValueError(f"invalid property specifier: {property_specifier}")

    result: Dict[str, Any] = {}
    if spec.isdigit():
        result["propertyId"] = spec
    else:
        result["hostname"] = spec

    if version is not None:
        if not version.isdigit() or int(version) < 1:
            raise ValueError(f"property_version: {version} must be an integer > 0")
        result["propertyVersion"] = int(version)

    return result
