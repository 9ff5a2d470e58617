#!/usr/bin/env python3
"""
Seed a local/dev database with one profile per role and the first tables.

Profiles get a local password hash so the staff API can be used without a
Supabase project (SUPABASE_URL unset).
"""

import argparse

from sqlalchemy import select

from pdv_shared.config import load_config
from pdv_shared.constants import Roles
from pdv_shared.db import get_session, init_db, init_engine
from pdv_shared.models import Base, Profile, Table

DEFAULT_PROFILES = [
    ("admin@padaria.local", "Administrador", Roles.ADMIN),
    ("caixa@padaria.local", "Caixa", Roles.CASHIER),
    ("cozinha@padaria.local", "Cozinha", Roles.KITCHEN),
    ("garcom@padaria.local", "Garçom", Roles.WAITER),
]


def seed(password: str, tables: int) -> None:
    config = load_config("pdv-script")
    init_engine(config)
    init_db(Base.metadata)

    with get_session() as session:
        print(f"{'Role':<10} | {'Name':<20} | {'Email':<30}")
        print("-" * 66)
        for email, name, role in DEFAULT_PROFILES:
            profile = session.execute(select(Profile).where(Profile.email == email)).scalar_one_or_none()
            if profile is None:
                profile = Profile(email=email, name=name, role=role.value, active=True)
                session.add(profile)
            profile.set_password(password)
            print(f"{role.value:<10} | {name:<20} | {email:<30}")

        existing = set(session.execute(select(Table.number)).scalars())
        created = 0
        for number in range(1, tables + 1):
            if number not in existing:
                session.add(Table(number=number))
                created += 1

    print("-" * 66)
    print(f"\nPassword for all profiles: {password}")
    print(f"Tables created: {created}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed staff profiles and tables")
    parser.add_argument("--password", default="padaria123")
    parser.add_argument("--tables", type=int, default=10, help="create tables 1..N")
    args = parser.parse_args()
    seed(args.password, args.tables)


if __name__ == "__main__":
    main()
