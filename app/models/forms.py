"""Form-related Pydantic models"""
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional


class FieldSpec(BaseModel):
    """A single form field and its validation rules"""
    name: str
    label: str
    kind: Literal["text", "phone", "email"] = "text"
    required: bool = True
    max_length: int = Field(1000, gt=0)


class FormSchema(BaseModel):
    """Field layout of a form and where its rows are stored"""
    name: str
    fields: List[FieldSpec]
    token_field: str = "recaptchaToken"
    sheet_range: str = "Sheet1!A:E"

    @property
    def field_names(self) -> List[str]:
        return [field.name for field in self.fields]


# Columns: Timestamp, Name, Phone, Knowledge, Confirmation
CONSULTATION_FORM = FormSchema(
    name="consultation",
    fields=[
        FieldSpec(name="fullName", label="Full Name", max_length=100),
        FieldSpec(name="phone", label="Phone", kind="phone", max_length=50),
        FieldSpec(name="knowledge", label="Knowledge level"),
        FieldSpec(name="confirmation", label="Crypto investment confirmation"),
    ],
)

# Columns: Timestamp, Name, Email, Phone, Notes
CONTACT_FORM = FormSchema(
    name="contact",
    fields=[
        FieldSpec(name="name", label="Name", max_length=100),
        FieldSpec(name="email", label="Email", kind="email", max_length=255),
        FieldSpec(name="phone", label="Phone", kind="phone", max_length=50),
        FieldSpec(name="notes", label="Notes", required=False),
    ],
)

FORM_SCHEMAS: Dict[str, FormSchema] = {
    CONSULTATION_FORM.name: CONSULTATION_FORM,
    CONTACT_FORM.name: CONTACT_FORM,
}


def get_form_schema(name: str) -> FormSchema:
    """Look up a built-in form schema by name"""
    try:
        return FORM_SCHEMAS[name]
    except KeyError:
        raise ValueError(f"Unknown form schema: {name!r}") from None


class SubmitResponse(BaseModel):
    """Form submission response"""
    ok: bool
    error: Optional[str] = None


class VerificationResult(BaseModel):
    """Outcome of a reCAPTCHA siteverify call"""
    success: bool = False
    score: float = 0.0
    action: Optional[str] = None
    hostname: Optional[str] = None
    challenge_ts: Optional[str] = None
    error_codes: List[str] = Field(default_factory=list)
