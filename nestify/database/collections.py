# Collection Names
COLLECTIONS = {
    'admins': 'admins',
    'hostels': 'hostels',
    'tenures': 'tenures',
    'rooms': 'rooms',
    'billing_records': 'billing_records',
    'payments': 'payments',
    'payment_orders': 'payment_orders',
    'notices': 'notices',
}

# Collections that live under hostels/{hostel_id}/
HOSTEL_SUBCOLLECTIONS = ('rooms', 'tenures', 'billing_records', 'payments', 'payment_orders', 'notices')


def hostel_collection(hostel_id: str, name: str) -> str:
    """Path of a hostel sub-collection, e.g. hostels/abc123/rooms"""
    if name not in HOSTEL_SUBCOLLECTIONS:
        raise ValueError(f"Unknown hostel sub-collection: {name}")
    if not hostel_id:
        raise ValueError("hostel_id is required")
    return f"{COLLECTIONS['hostels']}/{hostel_id}/{COLLECTIONS[name]}"


def collection_id(path: str) -> str:
    """Last segment of a collection path (the Firestore collection id)"""
    return path.rstrip('/').split('/')[-1]


# Collection Structure Documentation
COLLECTION_SCHEMAS = {
    'admins': {
        'fields': ['id', 'full_name', 'email', 'phone_number', 'razorpay_key_id', 'razorpay_secret_key'],
        'required': ['id', 'full_name', 'email'],
        'indexes': ['email']
    },
    'hostels': {
        'fields': ['name', 'location', 'admin_id'],
        'required': ['name', 'location', 'admin_id'],
        'indexes': ['admin_id']
    },
    'rooms': {
        'fields': ['hostel_id', 'room_number', 'rent', 'capacity', 'status'],
        'required': ['hostel_id', 'room_number', 'rent', 'capacity', 'status'],
        'indexes': ['status']
    },
    'tenures': {
        'fields': ['hostel_id', 'room_id', 'name', 'email', 'phone_number', 'registration_number', 'user_id'],
        'required': ['hostel_id', 'room_id', 'name', 'email', 'registration_number'],
        # registration_number + email is a collection group index
        'indexes': ['registration_number', 'email', 'user_id', 'room_id']
    },
    'billing_records': {
        'fields': ['tenure_id', 'hostel_id', 'rent_amount', 'electricity_bill', 'payment_status', 'payment_date', 'billing_period', 'due_date'],
        'required': ['tenure_id', 'hostel_id', 'rent_amount', 'electricity_bill', 'payment_status'],
        'indexes': ['tenure_id', 'payment_status', 'due_date']
    },
    'payments': {
        'fields': ['amount', 'razorpay_order_id', 'razorpay_payment_id', 'billing_record_id', 'tenure_id', 'hostel_id'],
        'required': ['amount', 'razorpay_payment_id', 'billing_record_id'],
        'indexes': ['billing_record_id', 'tenure_id']
    },
    # Razorpay order id -> the bill it was created for
    'payment_orders': {
        'fields': ['bill_id', 'tenure_id', 'hostel_id', 'amount', 'created_at'],
        'required': ['bill_id', 'tenure_id', 'hostel_id', 'amount'],
        'indexes': ['bill_id']
    },
    'notices': {
        'fields': ['hostel_id', 'title', 'content'],
        'required': ['hostel_id', 'title', 'content'],
        'indexes': ['created_at']
    },
}
