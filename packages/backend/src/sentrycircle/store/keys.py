"""Key naming for every record type.

The mobile app and older deployments share these keys, so they must not change.
"""


def user(email: str) -> str:
    return f"user:{email}"


def user_email(user_id: str) -> str:
    return f"userId:{user_id}"


def user_families(user_id: str) -> str:
    return f"userFamilies:{user_id}"


def family(family_id: str) -> str:
    return f"family:{family_id}"


def child(child_id: str) -> str:
    return f"child:{child_id}"


def device(device_id: str) -> str:
    return f"device:{device_id}"


def current_location(device_id: str) -> str:
    return f"currentLocation:{device_id}"


def location_history(device_id: str) -> str:
    return f"locationHistory:{device_id}"


def command(device_id: str, command_id: str) -> str:
    return f"command:{device_id}:{command_id}"


def command_list(device_id: str) -> str:
    return f"commands:{device_id}"
