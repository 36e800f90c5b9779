"""
Create or list admin accounts from the command line.
Usage: python -m productsaas.create_admin
"""
from getpass import getpass
from pydantic import ValidationError

from productsaas.database.connection import SessionLocal, create_tables
from productsaas.models.user import User, Role
from productsaas.schemas.admin import AdminCreateRequest
from productsaas.services.auth import create_user
from productsaas.core.config import settings
from productsaas.core.exceptions import AppError

def create_admin_user():
    """Create an admin user interactively"""
    print("ProductSaaS admin creation")
    print("=" * 40)

    db = SessionLocal()
    try:
        create_tables()

        try:
            admin_data = AdminCreateRequest(
                email=input("Email: ").strip(),
                username=input("Username: ").strip(),
                password=getpass("Password: ")
            )
        except ValidationError as e:
            for error in e.errors():
                print(f"Invalid {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
            return

        try:
            user = create_user(db, admin_data.email, admin_data.username, admin_data.password, role=Role.ADMIN)
        except AppError as e:
            print(f"Could not create admin: {e.message}")
            return

        print("Admin user created")
        print(f"Email:    {user.email}")
        print(f"Username: {user.username}")
        print(f"ID:       {user.id}")
        print(f"Sign in at {settings.FRONTEND_BASE_URL}/signin")
    finally:
        db.close()

def list_admin_users():
    db = SessionLocal()
    try:
        admins = db.query(User).filter(User.role == Role.ADMIN.value).order_by(User.created_at).all()
        if not admins:
            print("No admin users found.")
            return

        for admin in admins:
            print(f"{admin.email} ({admin.username}) created {admin.created_at:%Y-%m-%d} "
                  f"active={admin.is_active} verified={admin.is_verified}")
    finally:
        db.close()

def main():
    while True:
        print("\n1. Create admin user\n2. List admin users\n3. Exit")
        choice = input("Select an option (1-3): ").strip()
        if choice == "1":
            create_admin_user()
        elif choice == "2":
            list_admin_users()
        elif choice == "3":
            break
        else:
            print("Please choose 1, 2 or 3")

if __name__ == "__main__":
    main()
