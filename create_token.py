"""Issue a bearer token for an organizer.

Creates the user row if needed and prints a token usable in the
``Authorization: Bearer <token>`` header::

    python create_token.py organizer@example.com "Ada Lovelace" --days 365
"""

import argparse

from event_manager_api.app.core.db import init_db
from event_manager_api.app.core.security import create_access_token
from event_manager_api.app.services.user_service import UserService


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("name", nargs="?", default="")
    parser.add_argument("--days", type=int, default=365, help="token lifetime in days")
    args = parser.parse_args()

    init_db()
    user = UserService.get_or_create_user(args.email, args.name or args.email)
    token = create_access_token({"sub": user["email"]}, expires_delta=args.days * 24 * 60 * 60)
    print(token)


if __name__ == "__main__":
    main()
