"""
Seed database script.

Creates the schema, the system settings row, a few departments and the
default admin account. Safe to run more than once.
"""

import asyncio
import os

from intranet.apps.admin.models import SystemSettings
from intranet.apps.auth.models import User
from intranet.apps.departments.models import Department
from intranet.db.database import async_session_factory, init_models
from intranet.utils.security import hash_password
from intranet.utils.logger import get_logger

logger = get_logger(__name__)

DEPARTMENTS_TO_SEED = [
    {"name": "Gabinete", "description": "Gabinete do Prefeito", "color": "#1e3a8a", "icon": "landmark"},
    {"name": "Recursos Humanos", "description": "Gestão de pessoas", "color": "#059669", "icon": "users"},
    {"name": "Finanças", "description": "Secretaria de Finanças", "color": "#d97706", "icon": "dollar-sign"},
    {"name": "Tecnologia", "description": "Tecnologia da Informação", "color": "#7c3aed", "icon": "cpu"},
]

ADMIN = {
    "name": "Administrador",
    "email": os.getenv("SEED_ADMIN_EMAIL", "admin@prefeitura.gov.br"),
    "password": os.getenv("SEED_ADMIN_PASSWORD", "admin123"),
    "position": "Administrador do Sistema",
    "department": "Tecnologia",
}


async def seed() -> None:
    await init_models()
    async with async_session_factory() as session:
        try:
            logger.info("Starting database seed process...")
            await SystemSettings.load(session)

            departments = {}
            for data in DEPARTMENTS_TO_SEED:
                existing = await Department.find_one(session, name=data["name"])
                if existing:
                    logger.info(f"Department {data['name']} already exists. Skipping.")
                    departments[data["name"]] = existing
                    continue
                logger.info(f"Creating department: {data['name']}")
                departments[data["name"]] = await Department.create(db=session, commit=False, **data)

            if await User.exists(session, email=ADMIN["email"]):
                logger.info(f"User {ADMIN['email']} already exists. Skipping.")
            else:
                logger.info(f"Creating admin: {ADMIN['email']}")
                await User.create(
                    db=session,
                    commit=False,
                    name=ADMIN["name"],
                    email=ADMIN["email"],
                    hashed_password=hash_password(ADMIN["password"]),
                    position=ADMIN["position"],
                    department_id=departments[ADMIN["department"]].id,
                    role="admin",
                )

            await session.commit()
            logger.info("Database seeded successfully")

        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to seed database: {e}")
            raise


if __name__ == "__main__":
    asyncio.run(seed())
