"""
Create a user (e.g. the first admin; sign-up only ever creates members). Run from project root:
  python -m app.scripts.create_user EMAIL USERNAME PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@example.com admin your-secure-password admin
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.core.security import PASSWORD_MIN_LEN, hash_password
from app.models.user import User
from app.services.accounts import normalize_email


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Bookdesk user from the command line.")
    parser.add_argument("email", help="Login email (stored lowercase)")
    parser.add_argument("username", help="Unique username")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}+ chars)")
    parser.add_argument("role", nargs="?", default="admin", choices=["member", "admin"])
    parser.add_argument("--first-name", default="Site")
    parser.add_argument("--last-name", default="Admin")
    parser.add_argument("--phone", default="-")
    parser.add_argument("--country", default="-")
    parser.add_argument("--dob", default="1970-01-01")
    parser.add_argument("--gender", default="unspecified")
    args = parser.parse_args()

    email = normalize_email(args.email)
    username = args.username.strip()
    if not email or not username:
        print("Email and username are required.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN:
        print(f"Password must be at least {PASSWORD_MIN_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = (
            db.query(User)
            .filter((User.email == email) | (User.username == username))
            .first()
        )
        if existing:
            print(f"A user with email '{email}' or username '{username}' already exists.", file=sys.stderr)
            return 1
        user = User(
            first_name=args.first_name,
            last_name=args.last_name,
            username=username,
            email=email,
            phone=args.phone,
            country=args.country,
            password_hash=hash_password(args.password),
            dob=args.dob,
            gender=args.gender,
            role=args.role,
        )
        db.add(user)
        db.commit()
        print(f"Created user '{username}' <{email}> with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
