# Overview: Reference data loaded by `flask system init`.

# (type_code, type_name, effect, description)
MOVEMENT_TYPES = [
    ("IN", "Stock in", 1, "New quantity received into the warehouse"),
    ("OUT", "Stock out", -1, "Quantity issued from the warehouse"),
    ("RETURN", "Return", 1, "Quantity returned to the warehouse"),
    ("DAMAGED", "Damaged", -1, "Damaged quantity written off"),
    ("ADJUSTMENT", "Stock count", 0, "Quantity set from a physical count"),
    ("TRANSFER", "Department transfer", 0, "Quantity moved between departments"),
]

DEPARTMENTS = [
    "Information Technology",
    "Human Resources",
    "Finance",
    "Marketing",
    "Operations",
    "Customer Service",
]

FLOORS = [
    "Ground floor",
    "First floor",
    "Second floor",
    "Third floor",
]

RANKS = [
    "General manager",
    "Department director",
    "Head of section",
    "Senior employee",
    "Employee",
]

# (name, description)
MAIN_CATEGORIES = [
    ("Computers", "Computers and peripherals"),
    ("Office furniture", "Office furniture and fittings"),
    ("Networks", "Networking and communications equipment"),
]

# (sub category, main category)
SUB_CATEGORIES = [
    ("Laptop", "Computers"),
    ("Desktop", "Computers"),
    ("Desks", "Office furniture"),
]

# (item type, sub category)
ITEM_TYPES = [
    ("Dell Desktop", "Desktop"),
    ("HP Laptop", "Laptop"),
    ("Canon Printer", "Desks"),
]

# (username, email, full_name, password, role)
DEFAULT_USERS = [
    ("superadmin", "superadmin@hospital.local", "System Super Admin", "password123", "SUPER_ADMIN"),
    ("admin", "admin@hospital.local", "System Admin", "password123", "ADMIN"),
]
