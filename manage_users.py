#!/usr/bin/env python
"""
User Management CLI

Bootstraps staff accounts from the command line. ``POST /users/create`` is
itself admin-only, so the first administrator has to be created here.

Usage:
    python manage_users.py create-admin <email> <password> <first> <last> [super_admin]
    python manage_users.py list-users                      # List all accounts
    python manage_users.py deactivate <email>              # Deactivate an account
"""
import asyncio
import sys

from pydantic import ValidationError

from app.db.session import AsyncSessionLocal as async_session_maker
from app.repositories.user_repo import UserRepository
from app.schemas.user_schemas import UserCreateSchema, UserRole
from app.services.user_service import UserService


async def create_admin(
    email: str, password: str, first_name: str, last_name: str, role: UserRole
):
    """Create an admin or super admin account."""
    try:
        user_data = UserCreateSchema(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
    except ValidationError as e:
        print(f"Invalid user data: {e}")
        return

    async with async_session_maker() as db:
        service = UserService(db)
        if await service.repo.get_user_by_email(user_data.email):
            print(f"User '{user_data.email}' already exists.")
            return

        user = await service.create_user(user_data)
        print(f"{user.role.value} '{user.email}' created with id {user.id}")


async def list_users():
    """List every account, active or not."""
    async with async_session_maker() as db:
        users = await UserRepository(db).get_all_users()

        if not users:
            print("No users found.")
            return

        print(f"\n{'ID':<6} {'Email':<35} {'Name':<30} {'Role':<12} {'Active':<6}")
        print("-" * 92)

        for user in users:
            print(
                f"{user.id:<6} {user.email:<35} {user.full_name:<30} "
                f"{user.role.value:<12} {'yes' if user.is_active else 'no':<6}"
            )


async def deactivate_user(email: str):
    """Deactivate an account so it can no longer log in."""
    async with async_session_maker() as db:
        repo = UserRepository(db)
        user = await repo.get_user_by_email(email.lower())
        if not user:
            print(f"User '{email}' not found.")
            return
        if not user.is_active:
            print(f"User '{email}' is already inactive.")
            return

        await repo.remove(user)
        print(f"User '{email}' deactivated.")


def print_usage():
    """Print usage information."""
    print(__doc__)


async def main():
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print_usage()
        return

    command = sys.argv[1].lower()

    if command == "create-admin":
        if len(sys.argv) < 6:
            print("Error: email, password, first name and last name required")
            print(
                "Usage: python manage_users.py create-admin "
                "<email> <password> <first> <last> [super_admin]"
            )
            return
        role = UserRole.ADMIN
        if len(sys.argv) > 6:
            try:
                role = UserRole(sys.argv[6].lower())
            except ValueError:
                print(f"Unknown role: {sys.argv[6]}")
                return
            if role not in (UserRole.ADMIN, UserRole.SUPER_ADMIN):
                print("Role must be admin or super_admin")
                return
        await create_admin(sys.argv[2], sys.argv[3], sys.argv[4], sys.argv[5], role)

    elif command == "list-users":
        await list_users()

    elif command == "deactivate":
        if len(sys.argv) < 3:
            print("Error: Email required")
            print("Usage: python manage_users.py deactivate <email>")
            return
        await deactivate_user(sys.argv[2])

    else:
        print(f"Unknown command: {command}")
        print_usage()


if __name__ == "__main__":
    asyncio.run(main())
