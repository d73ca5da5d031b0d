from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    PRT_RECIPIENT = "prt_recipient"


class FulfillmentStatus(str, Enum):
    # порядок = путь заказа по мастерской
    INTAKE = "intake"
    ON_HOLD = "on_hold"
    TO_PREPARE = "to_prepare"
    MOCKUP_TODO = "mockup_todo"
    PRT_TODO = "prt_todo"
    AWAITING_VALIDATION = "awaiting_validation"
    PRINTING = "printing"
    PRESSING_TODO = "pressing_todo"
    CONTACT_CUSTOMER = "contact_customer"
    CUSTOMER_NOTIFIED = "customer_notified"
    ARCHIVED = "archived"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PRTStatus(str, Enum):
    NEW = "new"
    SEEN = "seen"
    DONE = "done"


STATUS_LABELS_FR = {
    FulfillmentStatus.INTAKE.value: "À traiter",
    FulfillmentStatus.ON_HOLD.value: "En attente",
    FulfillmentStatus.TO_PREPARE.value: "À préparer",
    FulfillmentStatus.MOCKUP_TODO.value: "Maquette à faire",
    FulfillmentStatus.PRT_TODO.value: "PRT à faire",
    FulfillmentStatus.AWAITING_VALIDATION.value: "Validation en attente",
    FulfillmentStatus.PRINTING.value: "En impression",
    FulfillmentStatus.PRESSING_TODO.value: "Pressage à faire",
    FulfillmentStatus.CONTACT_CUSTOMER.value: "Client à contacter",
    FulfillmentStatus.CUSTOMER_NOTIFIED.value: "Client prévenu",
    FulfillmentStatus.ARCHIVED.value: "Archivé",
}

PAYMENT_LABELS_FR = {
    PaymentStatus.PENDING.value: "En attente",
    PaymentStatus.PAID.value: "Payé",
    PaymentStatus.FAILED.value: "Échoué",
    PaymentStatus.REFUNDED.value: "Remboursé",
}

PRT_LABELS_FR = {
    PRTStatus.NEW.value: "Nouveau",
    PRTStatus.SEEN.value: "Vu",
    PRTStatus.DONE.value: "Traité",
}
