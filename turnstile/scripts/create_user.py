"""
Create a user (e.g. first admin). Run from project root:
  python -m turnstile.scripts.create_user USERNAME PASSWORD [-a AUTHORITY ...] [--attribute KEY=VALUE ...] [--disabled]
Example:
  python -m turnstile.scripts.create_user admin your-secure-password -a ADMIN -a USER --attribute email=admin@example.com
"""
import argparse
import logging
import sys

from pydantic import ValidationError

from turnstile.core.database import SessionLocal
from turnstile.core.exceptions import IdentityError
from turnstile.core.security import USERNAME_MAX_LEN
from turnstile.schemas.users import UserDetails
from turnstile.services.user_service import UserService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def parse_attribute(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key.strip(), val


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a Turnstile user.")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help="Password")
    parser.add_argument(
        "-a",
        "--authority",
        action="append",
        default=[],
        dest="authorities",
        help="Authority to grant; repeat for several (created if missing)",
    )
    parser.add_argument(
        "--attribute",
        action="append",
        default=[],
        dest="attributes",
        type=parse_attribute,
        metavar="KEY=VALUE",
        help="Extra profile field stored with the user; repeat for several",
    )
    parser.add_argument(
        "--disabled",
        action="store_true",
        help="Create the account disabled",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        details = UserDetails(
            username=args.username.strip(),
            password=args.password,
            enabled=not args.disabled,
            authorities=args.authorities,
            attributes=dict(args.attributes),
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            print(f"Invalid {field}: {error['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = UserService(db).create_user(details)
        print(f"Created user '{user.username}' with authorities {user.authority_names}.")
        return 0
    except IdentityError as e:
        print(e.message, file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("User creation failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
