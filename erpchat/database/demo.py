"""Fixed schema and starter questions used in demo mode."""

from erpchat.models.schema import FieldDescriptor, SchemaEntry


def _field(fieldname: str, label: str, fieldtype: str, options: str | None = None) -> FieldDescriptor:
    return FieldDescriptor(fieldname=fieldname, label=label, fieldtype=fieldtype, options=options)


DEMO_SCHEMA: tuple[SchemaEntry, ...] = (
    SchemaEntry(
        name="Sales Invoice",
        fields=(
            _field("name", "ID", "Data"),
            _field("customer_name", "Customer Name", "Data"),
            _field("grand_total", "Grand Total", "Currency"),
            _field("posting_date", "Posting Date", "Date"),
            _field("status", "Status", "Select", "Draft\nPaid\nUnpaid\nOverdue\nCancelled"),
            _field("item_group", "Item Group", "Data"),
        ),
    ),
    SchemaEntry(
        name="Customer",
        fields=(
            _field("customer_name", "Customer Name", "Data"),
            _field("customer_group", "Customer Group", "Link", "Customer Group"),
            _field("territory", "Territory", "Link", "Territory"),
            _field("loyalty_program", "Loyalty Program", "Link", "Loyalty Program"),
        ),
    ),
    SchemaEntry(
        name="Item",
        fields=(
            _field("item_code", "Item Code", "Data"),
            _field("item_name", "Item Name", "Data"),
            _field("stock_uom", "Default Unit of Measure", "Link", "UOM"),
            _field("standard_rate", "Standard Selling Rate", "Currency"),
            _field("item_group", "Item Group", "Link", "Item Group"),
        ),
    ),
    SchemaEntry(
        name="Employee",
        fields=(
            _field("employee_name", "Full Name", "Data"),
            _field("department", "Department", "Link", "Department"),
            _field("date_of_joining", "Date of Joining", "Date"),
            _field("status", "Status", "Select", "Active\nInactive\nSuspended\nLeft"),
        ),
    ),
)

SUGGESTED_QUESTIONS: tuple[str, ...] = (
    "Show me sales trends for the last 6 months",
    "Top 5 customers by revenue",
    "What is the distribution of sales by territory?",
    "Compare sales between Electronics and Furniture",
    "List employees who joined this year",
)

GREETING = (
    "Hello! I'm your Frappe data assistant. \n\n"
    "I am currently in 'Demo Mode'. Click 'Connect Database' in the sidebar "
    "to give me full access to your real Frappe data."
)
