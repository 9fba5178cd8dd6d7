from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# Base for every request/response body: snake_case in Python, camelCase on the wire
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Envelope shared by every response
class OkResponse(CamelModel):
    ok: bool = True


class ErrorResponse(CamelModel):
    ok: bool = False
    error: str


# Largest value a DECIMAL(10, 2) money column holds
MAX_AMOUNT = 99_999_999.99
MAX_SEATS_PER_ORDER = 100
SEAT_LABEL_MAX_LENGTH = 10


def clean_seat_labels(labels):
    """Strip labels; reject blank ones and ones longer than the column allows."""
    labels = [s.strip() for s in labels]
    if any(not s for s in labels):
        raise ValueError("Seat labels must not be empty")
    if any(len(s) > SEAT_LABEL_MAX_LENGTH for s in labels):
        raise ValueError(f"Seat labels must be at most {SEAT_LABEL_MAX_LENGTH} characters")
    return labels
