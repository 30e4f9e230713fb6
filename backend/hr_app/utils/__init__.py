# Utilities - núcleo de concorrência e helpers de banco
from hr_app.utils.db_helpers import get_by_id, get_by_field, validate_fk
from hr_app.utils.pagination import paginate_query, paginate_response, apply_filters
from hr_app.utils.sequencers import allocate, peek_next, format_code
from hr_app.utils.updates import conditional_update, update_values, VERSION_CHECK_DISABLED
from hr_app.utils.status import transition, transition_status, parse_status
from hr_app.utils.transactions import run_atomic, retry_on_conflict, translate_storage_error
from hr_app.utils.validation import parse_input

__all__ = [
    # db_helpers
    "get_by_id",
    "get_by_field",
    "validate_fk",
    # pagination
    "paginate_query",
    "paginate_response",
    "apply_filters",
    # sequencers
    "allocate",
    "peek_next",
    "format_code",
    # updates
    "conditional_update",
    "update_values",
    "VERSION_CHECK_DISABLED",
    # status
    "transition",
    "transition_status",
    "parse_status",
    # transactions
    "run_atomic",
    "retry_on_conflict",
    "translate_storage_error",
    # validation
    "parse_input",
]
