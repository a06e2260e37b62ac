# bazaar_orders/domain/errors.py


class OrderError(Exception):
    """Bazowy wyjatek domeny zamowien."""


class ValidationError(OrderError, ValueError):
    """Bledne dane wejsciowe (wina klienta, 400)."""


class TransitionError(OrderError):
    """Niedozwolona zmiana stanu zamowienia (409)."""


class AuthorizationError(OrderError, PermissionError):
    """Rola lub wlasciciel nie zgadza sie z operacja (403)."""


class NotFoundError(OrderError, LookupError):
    """Nieznany orderId (404)."""


class StorageConflict(OrderError):
    """Rownolegly zapis wykryty po wersji rekordu - mozna ponowic raz."""


class DuplicateOrderId(StorageConflict):
    """orderId juz istnieje w magazynie."""


class StorageUnavailable(OrderError):
    """Warstwa persystencji niedostepna (503)."""


class CatalogUnavailable(StorageUnavailable):
    """Katalog materialow niedostepny (503)."""
