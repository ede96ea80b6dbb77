import sys
import os
from sqlmodel import Session, select

# Add current directory to path
sys.path.append(os.getcwd())

from portal.core.config import settings
from portal.core.security import get_password_hash
from portal.db.session import engine, init_db
from portal.models.user import User, UserRole


def create_initial_admin():
    print("--- Initial Admin Creation ---")

    email = settings.FIRST_ADMIN_EMAIL
    init_db()

    with Session(engine) as session:
        user = session.exec(select(User).where(User.username == email)).first()
        if user:
            print(f"User with email {email} already exists.")
            return

        print(f"Creating admin {email}...")
        session.add(User(
            username=email,
            email=email,
            password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            company_name=settings.PROJECT_NAME,
            role=UserRole.ADMIN,
            is_temporary_password=True,
        ))
        session.commit()
        print("Initial admin created successfully!")
        print(f"Email: {email}")
        print("Password: value of FIRST_ADMIN_PASSWORD (change it after first login)")


if __name__ == "__main__":
    create_initial_admin()
