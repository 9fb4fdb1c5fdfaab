"""
Delete every account with the given email (all providers) together with its rooms.
Usage: python scripts/delete_users_by_email.py <email>
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import SessionLocal  # noqa: E402
from app.exceptions import AccountError  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.accounts import destroy_user  # noqa: E402
from sqlalchemy import func  # noqa: E402


def main():
    email = (sys.argv[1] if len(sys.argv) > 1 else "").strip().lower()
    if not email:
        print("Usage: python scripts/delete_users_by_email.py <email>")
        sys.exit(1)

    db = SessionLocal()
    try:
        users = db.query(User).filter(func.lower(User.email) == email).all()
        if not users:
            print(f"No users found with email: {email}")
            sys.exit(0)

        for user in users:
            uid, provider = user.id, user.provider
            destroy_user(db, user)
            print(f"Deleted user: {email} (provider={provider}, id={uid})")

        print(f"Done. Deleted {len(users)} user(s) with email: {email}")
    except AccountError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
