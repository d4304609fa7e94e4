"""Parse free-text contact input: one `email,firstName,lastName` per line."""

from app.models.domain.job_domain import Contact


def parse_contacts(raw_text: str) -> list[Contact]:
    """
    Blank lines and lines with an empty email are dropped.
    Duplicates are kept; each line becomes its own contact.
    """
    contacts: list[Contact] = []
    for line in (raw_text or "").splitlines():
        if not line.strip():
            continue
        parts = [part.strip() for part in line.split(",")]
        email = parts[0]
        if not email:
            continue
        contacts.append(
            Contact(
                email=email,
                first_name=parts[1] if len(parts) > 1 else "",
                last_name=parts[2] if len(parts) > 2 else "",
            )
        )
    return contacts
