"""
Entry-Form Validation

DESIGN DECISION: Validation happens before anything is submitted.

ERRORS (block the submission):
- Empty description
- Amount missing or unparseable
- Amount zero or negative
- Text longer than its field allows

WARNINGS (shown, never blocking):
- Date far in the future
- Unusually large amount

Once the form passes, the validator builds the NewTransaction that goes to
storage. This is also where the form's one business rule lives: income is
always filed under "Renda", whatever category was picked.

IMPORTANT: Validation never silently fixes user input beyond that rule.
It reports problems for the user to correct.
"""

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError

from smartcash.config import AppSettings
from smartcash.models.session import Authenticated, Guest, Unauthenticated
from smartcash.models.transaction import (
    Category,
    MAX_LENGTHS,
    NewTransaction,
    TransactionForm,
    TransactionType,
    normalize_tags,
)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one entry form."""

    amount: Optional[Decimal] = Field(
        default=None,
        description="Parsed amount, when it could be parsed"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def is_valid(self) -> bool:
        return not self.has_errors


class TransactionValidationError(ValueError):
    """The entry form has blocking errors."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("; ".join(messages) or "Invalid transaction")


_CURRENCY_NOISE = re.compile(r"(R\$|\s)")


def parse_amount(raw: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    """
    Parse an amount as typed in the form.

    Accepts plain numbers and Brazilian-formatted strings:
    "1500", "12,5", "R$ 1.234,56", "1,234.56".

    Returns None when the value cannot be read as a number.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    else:
        text = _CURRENCY_NOISE.sub("", raw)
        if not text:
            return None

        if "," in text and "." in text:
            # Whichever separator comes last is the decimal one
            if text.rfind(",") > text.rfind("."):
                text = text.replace(".", "").replace(",", ".")
            else:
                text = text.replace(",", "")
        elif "," in text:
            text = text.replace(",", ".")

        try:
            value = Decimal(text)
        except InvalidOperation:
            return None

    if not value.is_finite():
        return None
    return value


class TransactionValidator:
    """Validates entry-form input and turns it into a NewTransaction."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or AppSettings()

    def validate(self, form: TransactionForm) -> ValidationResult:
        """Check the form and collect every issue found."""
        issues = []

        if not form.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Please give the transaction a description",
                severity="error",
            ))

        for field, limit in MAX_LENGTHS.items():
            value = getattr(form, field) or ""
            if len(value) > limit:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="too_long",
                    message=f"{field.replace('_', ' ').capitalize()} must be at most {limit} characters",
                    severity="error",
                ))

        amount = parse_amount(form.amount)
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Please enter a valid amount",
                severity="error",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))
        elif amount > Decimal(str(self._settings.max_transaction_amount)):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (R$ {amount:,.2f}) seems unusually high",
                severity="warning",
            ))

        max_future_date = date.today() + timedelta(
            days=self._settings.future_date_tolerance_days
        )
        if form.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({form.date.isoformat()}) is far in the future",
                severity="warning",
            ))

        return ValidationResult(amount=amount, issues=issues)

    def build(
        self,
        form: TransactionForm,
        session: Union[Authenticated, Guest, Unauthenticated, None] = None,
    ) -> NewTransaction:
        """
        Validate the form and build the record to insert.

        Raises:
            TransactionValidationError: If the form has blocking errors
        """
        result = self.validate(form)
        if result.has_errors:
            raise TransactionValidationError(result)

        category = (
            Category.INCOME if form.type == TransactionType.INCOME else form.category
        )

        try:
            return NewTransaction(
                description=form.description,
                amount=result.amount,
                date=form.date,
                category=category,
                type=form.type,
                notes=form.notes,
                location=form.location,
                payment_method=form.payment_method,
                tags=normalize_tags(form.tags),
                user_id=session.owner_id if session is not None else None,
                user_email=session.owner_email if session is not None else None,
            )
        except ValidationError as e:
            # Anything the model rejects still reaches the user as a form error
            result.issues.extend(
                ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "form",
                    issue_type="invalid_value",
                    message=error["msg"],
                    severity="error",
                )
                for error in e.errors()
            )
            raise TransactionValidationError(result)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Text shown in the blocking alert."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"• {issue.message}")
        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please double-check:")
            for warning in result.warnings:
                lines.append(f"• {warning}")
        return "\n".join(lines)
