import getpass
import sys

from app.application.dto.auth_dto import CreateUserRequest
from app.container import build_container
from app.domain.constants import UserRole


def main() -> int:
    if len(sys.argv) < 2:
        print(f"usage: {sys.argv[0]} EMAIL [ROLE]")
        return 2
    email = sys.argv[1]
    role = sys.argv[2] if len(sys.argv) > 2 else UserRole.VIEWER.value
    if role not in UserRole.values():
        print(f"unknown role {role!r}; expected one of {', '.join(UserRole.values())}")
        return 2

    password = getpass.getpass("Password: ")
    container = build_container()
    try:
        profile = container.profile_service.create_profile(
            CreateUserRequest(email=email, password=password),
            role=role,
        )
    except ValueError as exc:
        print(exc)
        return 1
    print(f"created {profile.email} ({profile.role}) id={profile.id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
