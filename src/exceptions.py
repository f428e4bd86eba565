class PharmacyError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    code = "error"

    def __init__(self, message=None, **details):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details

    def to_dict(self):
        payload = {"error": self.code, "message": self.message}
        payload.update(self.details)
        return payload


class ResourceNotFoundException(PharmacyError):
    status_code = 404
    code = "not_found"


class MedicineNotFound(ResourceNotFoundException):
    code = "medicine_not_found"

    def __init__(self, medicine_id):
        super().__init__(f"Medicine with ID {medicine_id} not found", medicine_id=medicine_id)
        self.medicine_id = medicine_id


class PatientNotFound(ResourceNotFoundException):
    code = "patient_not_found"

    def __init__(self, patient_id):
        super().__init__(f"Patient with ID {patient_id} not found", patient_id=patient_id)
        self.patient_id = patient_id


class SaleNotFound(ResourceNotFoundException):
    code = "sale_not_found"

    def __init__(self, sale_id):
        super().__init__(f"Sales transaction with ID {sale_id} not found", sale_id=sale_id)
        self.sale_id = sale_id


class ValidationError(PharmacyError):
    code = "validation_error"


class InvalidQuantity(ValidationError):
    code = "invalid_quantity"

    def __init__(self, quantity):
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}", quantity=quantity)
        self.quantity = quantity


class InsufficientStock(PharmacyError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, medicine_id, medicine_name, available, requested):
        super().__init__(
            f"Insufficient stock for {medicine_name}. Available: {available}, Requested: {requested}",
            medicine_id=medicine_id,
            medicine_name=medicine_name,
            available=available,
            requested=requested,
        )
        self.medicine_id = medicine_id
        self.medicine_name = medicine_name
        self.available = available
        self.requested = requested


class InsufficientPayment(PharmacyError):
    status_code = 409
    code = "insufficient_payment"

    def __init__(self, total, received):
        super().__init__(
            "Payment received is less than total amount",
            total=total,
            received=received,
        )
        self.total = total
        self.received = received


class PatientHasTransactions(PharmacyError):
    status_code = 409
    code = "conflict"

    def __init__(self, patient_id):
        super().__init__("Cannot delete patient with existing sales transactions", patient_id=patient_id)
        self.patient_id = patient_id


class MedicineInUse(PharmacyError):
    status_code = 409
    code = "conflict"

    def __init__(self, medicine_id):
        super().__init__("Cannot delete medicine with recorded stock movements or sales", medicine_id=medicine_id)
        self.medicine_id = medicine_id


class InvariantViolation(PharmacyError):
    status_code = 500
    code = "invariant_violation"

    def __init__(self, medicine_id, expected, actual):
        super().__init__(
            f"Stock counter for medicine {medicine_id} is {actual} but ledger sums to {expected}",
            medicine_id=medicine_id,
            expected=expected,
            actual=actual,
        )
        self.medicine_id = medicine_id
        self.expected = expected
        self.actual = actual
