# pos/services/exceptions.py


class CheckoutError(Exception):
    """Base checkout exception"""


class RegisterClosedError(CheckoutError):
    pass


class EmptyCartError(CheckoutError):
    pass


class NoCustomerError(CheckoutError):
    pass


class PaymentPendingError(CheckoutError):
    pass


class NoPendingPaymentError(CheckoutError):
    pass


class MenuUnavailableError(CheckoutError):
    pass


class InvalidPaymentMethodError(CheckoutError):
    pass
