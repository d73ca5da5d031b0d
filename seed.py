# seed.py: сброс БД и демо-данные (сотрудники + заказы на разных этапах)
from decimal import Decimal

from sqlalchemy.orm import configure_mappers

import olda.models  # подтягиваем все модели
from olda.db import Base, engine, SessionLocal
from olda.models.order import Order, OrderItem
from olda.models.user import User
from olda.utils.enums import FulfillmentStatus, PaymentStatus, UserRole
from olda.utils.security import hash_password


def run_seed():
    # === RESET ===
    Base.metadata.drop_all(bind=engine)
    print("🗑 Все таблицы удалены")

    configure_mappers()
    Base.metadata.create_all(bind=engine)
    print("✅ Все таблицы пересозданы")

    db = SessionLocal()
    try:
        # --- Сотрудники ---
        users = [
            ("admin", "Admin", "123456", UserRole.ADMIN.value),
            ("loic", "Loïc", "123456", UserRole.PRT_RECIPIENT.value),
            ("alex", "Alex", "123456", UserRole.STAFF.value),
        ]
        for username, display_name, raw_password, role in users:
            db.add(User(
                username=username,
                display_name=display_name,
                password_hash=hash_password(raw_password),
                role=role,
            ))
            print(f"✅ User created (username='{username}', password='{raw_password}', role='{role}')")
        db.commit()

        # --- Заказы на разных этапах ---
        stages = [
            FulfillmentStatus.INTAKE,
            FulfillmentStatus.MOCKUP_TODO,
            FulfillmentStatus.PRT_TODO,
            FulfillmentStatus.PRINTING,
            FulfillmentStatus.CUSTOMER_NOTIFIED,
        ]
        for i, stage in enumerate(stages, start=1):
            order = Order(
                order_number=f"SEED-{i:03d}",
                customer_name=f"Client {i}",
                customer_email=f"client{i}@example.com",
                status=stage.value,
                payment_status=PaymentStatus.PAID.value if i % 2 else PaymentStatus.PENDING.value,
                subtotal=Decimal("25.00") * i,
                total=Decimal("25.00") * i,
                currency="EUR",
            )
            order.items = [
                OrderItem(name="T-shirt blanc", sku=f"TS-BL-{i:02d}", quantity=i, price=Decimal("20.00")),
                OrderItem(name="DTF arrière", sku=f"DTF-BACK-{i:02d}", quantity=1, price=Decimal("5.00")),
            ]
            db.add(order)
            db.commit()
            print(f"✅ Заказ создан: {order.order_number}")
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
