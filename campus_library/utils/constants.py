# Library rules
BORROWING_LIMIT = 3  # Loans a user may hold at the same time
LOAN_DURATION_DAYS = 14
RENEWAL_DURATION_DAYS = 14

# Fines
DEFAULT_FINE_AMOUNT = 5000
FINE_INTERVAL_DAYS = {"DAILY": 1, "WEEKLY": 7, "MONTHLY": 30}

# Pagination
DEFAULT_PAGE_NUMBER = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

# Cache
CATEGORIES_CACHE_KEY = "categories:all"

# Roles
ROLE_USER = "USER"
ROLE_LIBRARIAN = "LIBRARIAN"
ROLE_MANAGER = "MANAGER"
STAFF_ROLES = (ROLE_LIBRARIAN, ROLE_MANAGER)
