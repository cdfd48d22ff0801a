from cellar.database import PostgresqlDB
from cellar.database.enums import RoleName, PermissionName
from cellar.database.models import Permission, Role, User
from cellar.security import hash_password
from cellar.logging import get_logger
from cellar.config import ADMIN_NAME, ADMIN_EMAIL, ADMIN_PASSWORD

ROLE_PERMISSIONS: dict[RoleName, list[PermissionName]] = {
    RoleName.ADMIN: list(PermissionName),
    RoleName.CUSTOMER: [PermissionName.VIEW_CONSIGNMENTS, PermissionName.VIEW_WINES]
}


async def setup(db: PostgresqlDB = None):
    """Create the schema and, on an empty database, the base roles and the admin user."""
    logger = get_logger(__name__)
    owns_db = db is None

    if owns_db:
        db = PostgresqlDB()

    await db.create_database()

    if await db.is_empty():
        async with db.session(autoflush=False) as session:
            permissions = await db.add_many(
                Permission,
                *({"name": name.value} for name in PermissionName),
                session=session
            )
            permissions_by_name = {permission.name: permission for permission in permissions}
            roles: dict[RoleName, Role] = {}

            for role_name, permission_names in ROLE_PERMISSIONS.items():
                roles[role_name] = await db.add(
                    Role,
                    name=role_name.value,
                    permissions=[{"permission": permissions_by_name[name]} for name in permission_names],
                    session=session
                )

            if ADMIN_PASSWORD:
                await db.add(
                    User,
                    name=ADMIN_NAME,
                    email=ADMIN_EMAIL,
                    password=hash_password(ADMIN_PASSWORD),
                    roles=[{"role": roles[RoleName.ADMIN]}],
                    session=session
                )
            else:
                logger.warning("ADMIN_PASSWORD is not set, skipping admin user creation")

        logger.debug(f"Fresh database set up successfully!")

    logger.debug(f"Admin user: {ADMIN_EMAIL}")

    if owns_db:
        await db.close()
