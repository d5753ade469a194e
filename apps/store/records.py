"""
Typed records for the store collections.

Documents come out of the store as loosely-typed dicts whose field casing
varies between writers (``customerId`` next to ``CustomerId``). Every read
goes through ``from_document()`` here, which matches field names
case-insensitively and converts values once, so the rest of the code only
sees these dataclasses.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

from apps.store.services.exceptions import InvalidRecordError

# Collection names
CUSTOMERS = 'customers'
COURSES = 'courses'
TEACHERS = 'teachers'
COURSE_GRANTS = 'course_customer_crossrefs'
TRANSACTIONS = 'transactions'
# One document per claimed email address, keyed by its digest
CUSTOMER_EMAILS = 'customer_emails'

BALANCE_UPDATE = 'Balance Update'

CENT = Decimal('0.01')
# Largest balance a customer may hold (ten integer digits)
MAX_BALANCE = Decimal('9999999999.99')


def _fields(document: dict) -> dict:
    """Case-folded view of a record, without the attached store key."""
    return {
        name.casefold(): value
        for name, value in document.items()
        if name != 'id'
    }


def to_money(value, default: Decimal = Decimal('0.00')) -> Decimal:
    """Convert a stored number (or numeric string) to cents precision."""
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError):
        return default


def to_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _text(value) -> str:
    return '' if value is None else str(value)


def _required_id(fields: dict, name: str, document: dict) -> int:
    value = to_int(fields.get(name))
    if value is None:
        raise InvalidRecordError(
            f"Document {document.get('id')!r} has no integer {name!r} field"
        )
    return value


def grant_key(customer_id: int, course_id: int) -> str:
    """Deterministic key of the grant for one (customer, course) pair."""
    return f"{customer_id}_{course_id}"


@dataclass(frozen=True)
class Customer:
    id: int
    email: str
    password: str = field(repr=False)
    name: str = ''
    phone_number: str = ''
    date_of_birth: str = ''
    date_created: str = ''
    image_url: Optional[str] = None
    balance: Decimal = Decimal('0.00')
    key: Optional[str] = None

    @classmethod
    def from_document(cls, document: dict) -> 'Customer':
        fields = _fields(document)
        return cls(
            id=_required_id(fields, 'id', document),
            email=_text(fields.get('email')),
            password=_text(fields.get('password')),
            name=_text(fields.get('name')),
            phone_number=_text(fields.get('phonenumber')),
            date_of_birth=_text(fields.get('dateofbirth')),
            date_created=_text(fields.get('datecreated')),
            image_url=fields.get('imageurl') or None,
            balance=to_money(fields.get('balance')),
            key=document.get('id'),
        )

    def to_document(self) -> dict:
        return {
            'Id': self.id,
            'Email': self.email,
            'Password': self.password,
            'Name': self.name,
            'PhoneNumber': self.phone_number,
            'DateOfBirth': self.date_of_birth,
            'DateCreated': self.date_created,
            'ImageUrl': self.image_url,
            'Balance': self.balance,
        }


@dataclass(frozen=True)
class Course:
    id: int
    name: str
    description: str = ''
    duration_minutes: Optional[int] = None
    category: str = ''
    price_text: str = ''
    teacher_id: Optional[int] = None
    key: Optional[str] = None

    @classmethod
    def from_document(cls, document: dict) -> 'Course':
        fields = _fields(document)
        duration = fields.get('duration')
        if isinstance(duration, str):
            # Older documents store "45 min"
            duration = duration.split()[0] if duration.split() else None
        return cls(
            id=_required_id(fields, 'id', document),
            name=_text(fields.get('name')),
            description=_text(fields.get('description')),
            duration_minutes=to_int(duration),
            category=_text(fields.get('category')),
            price_text=_text(fields.get('price')),
            teacher_id=to_int(fields.get('teacherid')),
            key=document.get('id'),
        )


@dataclass(frozen=True)
class Teacher:
    id: int
    name: str
    experience: str = ''
    date_started_teaching: str = ''
    bio: str = ''
    specialties: str = ''
    certifications: str = ''
    key: Optional[str] = None

    @classmethod
    def from_document(cls, document: dict) -> 'Teacher':
        fields = _fields(document)
        return cls(
            id=_required_id(fields, 'id', document),
            name=_text(fields.get('name')),
            experience=_text(fields.get('experience')),
            date_started_teaching=_text(fields.get('datestartedteaching')),
            bio=_text(fields.get('bio')),
            specialties=_text(fields.get('specialties')),
            certifications=_text(fields.get('certifications')),
            key=document.get('id'),
        )


@dataclass(frozen=True)
class CourseGrant:
    """Entitlement of one customer to one course."""

    customer_id: int
    course_id: int
    transaction_id: Optional[int] = None
    purchased_at: str = ''
    key: Optional[str] = None

    @classmethod
    def from_document(cls, document: dict) -> 'CourseGrant':
        fields = _fields(document)
        return cls(
            customer_id=_required_id(fields, 'customerid', document),
            course_id=_required_id(fields, 'courseid', document),
            transaction_id=to_int(fields.get('transactionid')),
            purchased_at=_text(fields.get('purchasedat')),
            key=document.get('id'),
        )

    def to_document(self) -> dict:
        document = {
            'customerId': self.customer_id,
            'courseId': self.course_id,
        }
        if self.transaction_id is not None:
            document['transactionId'] = self.transaction_id
        if self.purchased_at:
            document['purchasedAt'] = self.purchased_at
        return document


@dataclass(frozen=True)
class LedgerTransaction:
    """One money movement on a customer's account."""

    id: int
    customer_id: int
    amount: Decimal
    date_time: str = ''
    payment_method: str = ''
    status: bool = True
    key: Optional[str] = None

    @property
    def is_credit(self) -> bool:
        """Balance top-ups add money, everything else is a purchase debit."""
        return self.payment_method == BALANCE_UPDATE

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_credit else -self.amount

    @classmethod
    def from_document(cls, document: dict) -> 'LedgerTransaction':
        fields = _fields(document)
        status = fields.get('status', True)
        return cls(
            id=_required_id(fields, 'id', document),
            customer_id=_required_id(fields, 'customerid', document),
            amount=to_money(fields.get('amount')),
            date_time=_text(fields.get('datetime')),
            payment_method=_text(fields.get('paymentmethod')),
            status=status if isinstance(status, bool) else str(status).lower() == 'true',
            key=document.get('id'),
        )

    def to_document(self) -> dict:
        return {
            'Id': self.id,
            'CustomerId': self.customer_id,
            'Amount': f"{self.amount:.2f}",
            'DateTime': self.date_time,
            'PaymentMethod': self.payment_method,
            'Status': self.status,
        }
