import sys
import os

# Agregar el directorio raíz al path para poder importar app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import SessionLocal, engine, Base
from app.security import create_user_token
from app.models import Organization, User, UserRole, Role
from app.crud.hierarchy import create_hierarchy, get_hierarchy_tree
from app.exceptions import FeedbackHRException

def init_users():
    print("Creating tables...")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        # 1. Crear Organización Demo
        org = db.query(Organization).filter_by(slug="demo").first()
        if not org:
            print("Creating demo organization...")
            org = Organization(name="Demo Corp", slug="demo")
            db.add(org)
            db.commit()
            db.refresh(org)

        # 2. Crear Usuarios (super admin, admin, RH, jefes y empleados)
        users_data = [
            {"name": "Ana Root", "email": "root@demo.com", "title": "Plataforma", "roles": [Role.SUPER_ADMIN]},
            {"name": "Bruno Director", "email": "bruno@demo.com", "title": "CEO", "roles": [Role.ADMIN]},
            {"name": "Carla RH", "email": "carla@demo.com", "title": "HR Partner", "roles": [Role.HR]},
            {"name": "Diego Gerente", "email": "diego@demo.com", "title": "Engineering Manager", "roles": [Role.MANAGER]},
            {"name": "Elena Dev", "email": "elena@demo.com", "title": "Developer", "roles": [Role.EMPLOYEE]},
            {"name": "Fer Dev", "email": "fer@demo.com", "title": "Developer", "roles": [Role.EMPLOYEE]},
        ]
        users = {}
        for u_data in users_data:
            user = db.query(User).filter_by(email=u_data["email"]).first()
            if not user:
                print(f"Creating user {u_data['email']}...")
                user = User(
                    organization_id=org.id,
                    name=u_data["name"],
                    email=u_data["email"],
                    title=u_data["title"],
                    department="Engineering",
                    is_active=True,
                )
                for role in u_data["roles"]:
                    user.roles.append(UserRole(role=role.value, organization_id=org.id))
                db.add(user)
                db.commit()
                db.refresh(user)
            users[u_data["email"]] = user

        # 3. Jerarquía: Bruno -> Diego -> (Elena, Fer); Bruno -> Carla
        relationships = [
            ("bruno@demo.com", None),
            ("carla@demo.com", "bruno@demo.com"),
            ("diego@demo.com", "bruno@demo.com"),
            ("elena@demo.com", "diego@demo.com"),
            ("fer@demo.com", "diego@demo.com"),
        ]
        for employee_email, manager_email in relationships:
            manager_id = users[manager_email].id if manager_email else None
            try:
                create_hierarchy(db, org.id, users[employee_email].id, manager_id)
            except FeedbackHRException as e:
                print(f"Skipping {employee_email}: {e.message}")

        roots = get_hierarchy_tree(db, org.id)
        print(f"Hierarchy ready: {len(roots)} root(s), {sum(r.employee_count for r in roots)} reports.")

        # 4. Tokens para probar la API
        print("\n--- TOKENS (Authorization: Bearer ...) ---")
        for email, user in users.items():
            print(f"{email}: {create_user_token(user)}")

    except Exception as e:
        print(f"Error initializing DB: {e}")
        db.rollback()
    finally:
        db.close()

if __name__ == "__main__":
    init_users()
