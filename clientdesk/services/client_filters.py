from collections import OrderedDict
from typing import Iterable

from clientdesk.models.client_image import UNCATEGORIZED_PROJECT, ClientImage
from clientdesk.models.user import User

ALL = "All"
TREATED_FILTERS = {"All", "Treated", "Untreated"}


def effective_status(user: User) -> str:
    return user.status or "active"


def parse_age_range(age_range: str) -> tuple[int, int]:
    """Parse "min-max" into inclusive bounds."""
    try:
        low, high = (int(part) for part in age_range.split("-", 1))
    except ValueError as exc:
        raise ValueError(f"Invalid age range: {age_range!r}") from exc
    if low > high:
        raise ValueError(f"Invalid age range: {age_range!r}")
    return low, high


def matches_search(user: User, term: str) -> bool:
    term = term.lower()
    fields = (user.first_name, user.last_name, user.email, user.phone)
    if any(value and term in value.lower() for value in fields):
        return True
    return term in str(user.id or "")


def filter_clients(
    clients: Iterable[User],
    search: str | None = None,
    gender: str | None = None,
    age_range: str | None = None,
    status: str | None = None,
) -> list[User]:
    result = list(clients)
    if search:
        result = [client for client in result if matches_search(client, search)]
    if gender:
        result = [client for client in result if client.gender == gender]
    if age_range:
        low, high = parse_age_range(age_range)
        result = [
            client for client in result
            if client.age is not None and low <= client.age <= high
        ]
    if status:
        result = [client for client in result if effective_status(client) == status]
    return result


def filter_users(users: Iterable[User], search: str | None = None) -> list[User]:
    if not search:
        return list(users)
    term = search.lower()
    return [
        user for user in users
        if any(
            value and term in value.lower()
            for value in (user.first_name, user.last_name, user.email, user.role)
        )
    ]


def count_by_status(clients: Iterable[User]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for client in clients:
        key = effective_status(client)
        counts[key] = counts.get(key, 0) + 1
    return counts


def filter_images(
    images: Iterable[ClientImage],
    project: str | None = ALL,
    treated: str | None = ALL,
) -> list[ClientImage]:
    project = project or ALL
    treated = treated or ALL
    if treated not in TREATED_FILTERS:
        raise ValueError(f"Invalid treated filter: {treated!r}")

    def _keep(image: ClientImage) -> bool:
        if project != ALL and image.project_label != project:
            return False
        if treated == "Treated":
            return bool(image.treated)
        if treated == "Untreated":
            return not image.treated
        return True

    return [image for image in images if _keep(image)]


def group_images_by_project(images: Iterable[ClientImage]) -> "OrderedDict[str, list[ClientImage]]":
    grouped: "OrderedDict[str, list[ClientImage]]" = OrderedDict()
    for image in images:
        grouped.setdefault(image.project_label, []).append(image)
    return grouped


def project_names(images: Iterable[ClientImage]) -> list[str]:
    images = list(images)
    names = sorted({image.project for image in images if image.project})
    if any(not image.project for image in images):
        names.append(UNCATEGORIZED_PROJECT)
    return names


def projects_overview(images: Iterable[ClientImage]) -> list[dict]:
    overview = []
    for name, members in group_images_by_project(images).items():
        overview.append(
            {
                "name": name,
                "total_images": len(members),
                "treated_images": sum(1 for image in members if image.treated),
            }
        )
    return overview
