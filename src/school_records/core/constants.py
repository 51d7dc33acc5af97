"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
LOGIN_ACTIVITY_DAYS = 3

STUDENT_CSV_COLUMNS = (
    "username",
    "email",
    "mobile",
    "first_name",
    "last_name",
    "date_of_birth",
    "address",
)
IMPORT_REQUIRED_FIELDS = ("username", "email", "password", "mobile", "first_name", "last_name")
EXPORT_FETCH_SIZE = 500

CSV_MIME_TYPE = "text/csv"
CSV_UPLOAD_FIELD = "csvFile"
EXPORT_FILENAME = "students.csv"

EXPORT_FILTER_FIELDS = ("username", "email", "mobile", "first_name", "last_name")
