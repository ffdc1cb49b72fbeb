"""
Centralized category presentation values.
Icons and colors are validated against these lists on every write.
"""

# Icon names understood by the presentation layer
CATEGORY_ICONS = (
    "Home",
    "Car",
    "ShoppingCart",
    "Coffee",
    "Utensils",
    "Gamepad2",
    "Music",
    "Book",
    "Plane",
    "Heart",
    "Gift",
    "Shirt",
    "Smartphone",
    "Laptop",
    "CreditCard",
    "PiggyBank",
    "TrendingUp",
    "TrendingDown",
    "DollarSign",
    "Euro",
    "Building",
    "Fuel",
    "ShoppingBag",
    "Pizza",
    "Bus",
    "Train",
    "Bike",
    "Wallet",
    "Receipt",
    "Calculator",
    "Briefcase",
    "GraduationCap",
    "Stethoscope",
    "Dumbbell",
    "Users",
    "Baby",
    "Dog",
    "Cat",
    "Trees",
    "Lightbulb",
    "Wrench",
    "Palette",
    "Camera",
    "Monitor",
    "Headphones",
    "Calendar",
    "MapPin",
    "Star",
)

# Palette (lowercase hex)
CATEGORY_COLORS = (
    "#8b5cf6",
    "#a855f7",
    "#c084fc",
    "#7c3aed",
    "#d8b4fe",
    "#ef4444",
    "#f97316",
    "#f59e0b",
    "#eab308",
    "#84cc16",
    "#22c55e",
    "#10b981",
    "#14b8a6",
    "#06b6d4",
    "#0ea5e9",
    "#3b82f6",
    "#6366f1",
    "#d946ef",
    "#ec4899",
    "#f43f5e",
    "#64748b",
    "#6b7280",
    "#374151",
)

FULL_NAME_SEPARATOR = " > "

# Default tree seeded for new owners: (parent, child)
DEFAULT_CATEGORY_TREE = {
    "Income": ("Salary", "Freelance", "Interest"),
    "Housing": ("Rent", "Utilities", "Internet"),
    "Food": ("Groceries", "Dining Out", "Coffee"),
    "Transportation": ("Public Transit", "Fuel", "Parking"),
    "Health": ("Pharmacy", "Dental"),
    "Entertainment": ("Movies", "Games"),
}
