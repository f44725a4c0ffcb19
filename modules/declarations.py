"""
Declaration (affidavit) forms per category.

The templates are static PDFs hosted next to the application; this
module only decides which ones apply and how to name the filled copy.
Course and year never change the result.
"""

from __future__ import annotations

from typing import Optional

from config import Config
from models.requirements import DeclarationForm, DeclarationSet
from models.selection import Category, SelectionState


RESERVED_CATEGORIES = frozenset({
    Category.OBC, Category.SC, Category.ST, Category.SBC, Category.VJNT, Category.SEBC,
})

# Category-specific line for the shared caste declaration template
_RESERVED_INSTRUCTIONS = {
    Category.OBC: "Write 'OBC' as your category and quote the caste certificate number.",
    Category.SC: "Write 'SC' as your category and quote the caste certificate number.",
    Category.ST: "Write 'ST' as your category and quote the caste certificate number.",
    Category.SBC: "Write 'SBC' as your category and quote the caste certificate number.",
    Category.VJNT: (
        "Write 'VJNT' and your sub-group (VJ/NT-B/NT-C/NT-D) as your category "
        "and quote the caste certificate number."
    ),
    Category.SEBC: (
        "Write 'SEBC' as your category and quote both the caste certificate "
        "and non-creamy layer certificate numbers."
    ),
}


def _url(base_url: str, template: str) -> str:
    return f"{base_url.rstrip('/')}/{template}"


def declaration_set(state: SelectionState, base_url: Optional[str] = None) -> Optional[DeclarationSet]:
    """Return the declaration entry for the student's category, None without a category."""
    base_url = base_url if base_url is not None else Config.DECLARATION_FORMS_BASE_URL
    category = state.category

    if category is Category.OPEN and state.is_hosteller:
        return DeclarationSet(
            key="open_hosteller",
            forms=(
                DeclarationForm(
                    title="Ration Card Declaration (Family Holds Ration Card)",
                    instruction_text=(
                        "Fill in the family ration card number and card colour, "
                        "sign, and attach the first page of the ration card."
                    ),
                    suggested_file_name="Ration_Card_Declaration.pdf",
                    download_url=_url(base_url, "open_hostel_ration_card_declaration.pdf"),
                ),
                DeclarationForm(
                    title="Ration Card Declaration (No Ration Card)",
                    instruction_text=(
                        "Use this variant only if the family has no ration card. "
                        "Both parent and student must sign."
                    ),
                    suggested_file_name="No_Ration_Card_Declaration.pdf",
                    download_url=_url(base_url, "open_hostel_no_ration_card_declaration.pdf"),
                ),
            ),
        )

    if category is Category.OPEN:
        return DeclarationSet(
            key="open",
            forms=(
                DeclarationForm(
                    title="Open Category Self Declaration",
                    instruction_text=(
                        "Declare annual family income and that no other government "
                        "scholarship is availed for the same course."
                    ),
                    suggested_file_name="Self_Declaration.pdf",
                    download_url=_url(base_url, "open_self_declaration.pdf"),
                ),
            ),
        )

    if category in RESERVED_CATEGORIES:
        return DeclarationSet(
            key="reserved",
            forms=(
                DeclarationForm(
                    title=f"Caste Category Self Declaration ({category.value})",
                    instruction_text=_RESERVED_INSTRUCTIONS[category],
                    suggested_file_name="Caste_Declaration.pdf",
                    download_url=_url(base_url, "caste_self_declaration.pdf"),
                ),
            ),
        )

    if category is Category.MINORITY:
        return DeclarationSet(
            key="minority",
            forms=(
                DeclarationForm(
                    title="Minority Community Declaration",
                    instruction_text=(
                        "State your minority community and sign on non-judicial "
                        "stamp paper where the college asks for it."
                    ),
                    suggested_file_name="Minority_Declaration.pdf",
                    download_url=_url(base_url, "minority_declaration.pdf"),
                ),
            ),
        )

    return None
