"""
Create or reset an ADMIN account.

Self-registration only ever creates students, so the first administrator has
to be seeded from the command line:

    cd backend
    python create_admin_user.py --matricule ADMIN001 --name "Repository Admin"

The password is read from ADMIN_PASSWORD or prompted for. Running the script
again for an existing matricule resets its password and promotes it to ADMIN.
"""

import argparse
import asyncio
import getpass
import os
import sys

from sqlalchemy import select

from projectrepo.database import async_session_factory, dispose_engine
from projectrepo.models.enums import UserRole
from projectrepo.models.user import User
from projectrepo.security import get_password_hash


async def create_admin(matricule: str, name: str, email: str, password: str) -> None:
    async with async_session_factory() as db:
        result = await db.execute(select(User).where(User.matricule == matricule))
        existing = result.scalar_one_or_none()

        if existing:
            existing.password_hash = get_password_hash(password)
            existing.role = UserRole.ADMIN.value
            if email:
                existing.email = email
            print(f"Updated existing user {matricule}: role ADMIN, password reset")
        else:
            db.add(
                User(
                    matricule=matricule,
                    name=name,
                    email=email or None,
                    password_hash=get_password_hash(password),
                    role=UserRole.ADMIN.value,
                )
            )
            print(f"Created admin user: {matricule}")

        await db.commit()
    await dispose_engine()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or reset an ADMIN account.")
    parser.add_argument("--matricule", required=True)
    parser.add_argument("--name", default="Administrator")
    parser.add_argument("--email", default="")
    args = parser.parse_args()

    password = os.environ.get("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters.", file=sys.stderr)
        return 1

    asyncio.run(create_admin(args.matricule.strip(), args.name.strip(), args.email.strip().lower(), password))
    return 0


if __name__ == "__main__":
    sys.exit(main())
