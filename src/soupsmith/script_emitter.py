"""Render an extraction plan into a standalone BeautifulSoup program.

Every program shares the same loader and extraction loop; the output format
only picks the serialization tail appended after it.
"""

from __future__ import annotations

from dataclasses import dataclass

from .extraction_plan import ExtractionPlan, SimplePlan, StructuredPlan
from .models import OutputFormat

CSV_OUTPUT_NAME = "output.csv"
JSON_OUTPUT_NAME = "output.json"

PLACEHOLDER_SCRIPT = (
    "# Please complete the field definitions to generate the script.\n"
    "# - For Structured Data, define a container and at least one field.\n"
    "# - For a Simple List, define the single field you want to extract.\n"
)

_STRUCTURED_CSV_TAIL = r'''
# --- Save data to CSV ---
if all_items:
    csv_file_name = "__CSV__"
    print(f"\nSaving data to {csv_file_name}...")
    try:
        with open(csv_file_name, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=field_names)
            writer.writeheader()
            writer.writerows(all_items)
        print("Data successfully saved to CSV.")
    except OSError as e:
        print(f"Error saving to CSV: {e}")
else:
    print("\nNo data extracted to save.")
'''

_SIMPLE_CSV_TAIL = r'''
# --- Save data to CSV ---
if extracted_data:
    csv_file_name = "__CSV__"
    print(f"\nSaving data to {csv_file_name}...")
    try:
        with open(csv_file_name, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow([field_name])
            for value in extracted_data:
                writer.writerow([value])
        print("Data successfully saved to CSV.")
    except OSError as e:
        print(f"Error saving to CSV: {e}")
else:
    print("\nNo data extracted to save.")
'''

_STRUCTURED_JSON_TAIL = r'''
# --- Save data to JSON ---
if all_items:
    json_file_name = "__JSON__"
    print(f"\nSaving data to {json_file_name}...")
    try:
        with open(json_file_name, "w", encoding="utf-8") as jsonfile:
            json.dump(all_items, jsonfile, indent=4, ensure_ascii=False)
        print("Data successfully saved to JSON.")
    except OSError as e:
        print(f"Error saving to JSON: {e}")
else:
    print("\nNo data extracted to save.")
'''

_SIMPLE_JSON_TAIL = r'''
# --- Save data to JSON ---
if extracted_data:
    json_file_name = "__JSON__"
    print(f"\nSaving data to {json_file_name}...")
    try:
        # All values are stored as one list under the field name.
        output_json = {field_name: extracted_data}
        with open(json_file_name, "w", encoding="utf-8") as jsonfile:
            json.dump(output_json, jsonfile, indent=4, ensure_ascii=False)
        print("Data successfully saved to JSON.")
    except OSError as e:
        print(f"Error saving to JSON: {e}")
else:
    print("\nNo data extracted to save.")
'''

_STRUCTURED_PRINT_TAIL = r'''
# --- Print Extracted Data ---
print("\n--- Extracted Data ---")
for item in all_items:
    print(item)
'''

_SIMPLE_PRINT_TAIL = r'''
# --- Print Extracted Data ---
print("\n--- Extracted Data ---")
for value in extracted_data:
    print(value)
'''


@dataclass(frozen=True, slots=True)
class FormatRenderer:
    imports: tuple[str, ...]
    structured_tail: str
    simple_tail: str

    def tail(self, plan: ExtractionPlan) -> str:
        template = self.structured_tail if isinstance(plan, StructuredPlan) else self.simple_tail
        return template.replace("__CSV__", CSV_OUTPUT_NAME).replace("__JSON__", JSON_OUTPUT_NAME)


RENDERERS: dict[OutputFormat, FormatRenderer] = {
    "csv": FormatRenderer(("import csv",), _STRUCTURED_CSV_TAIL, _SIMPLE_CSV_TAIL),
    "json": FormatRenderer(("import json",), _STRUCTURED_JSON_TAIL, _SIMPLE_JSON_TAIL),
    "print": FormatRenderer((), _STRUCTURED_PRINT_TAIL, _SIMPLE_PRINT_TAIL),
}


def emit_script(plan: ExtractionPlan, output_format: OutputFormat, source_file_name: str) -> str:
    renderer = RENDERERS[output_format]
    imports = [*renderer.imports, "import sys", "", "from bs4 import BeautifulSoup"]
    extraction = build_structured_extraction(plan) if isinstance(plan, StructuredPlan) else build_simple_extraction(plan)
    return "\n".join(imports) + "\n" + build_loader(source_file_name) + extraction + renderer.tail(plan)


def build_loader(source_file_name: str) -> str:
    return (
        "\n"
        "# --- Setup Instructions ---\n"
        "# 1. Make sure you have Python installed.\n"
        "# 2. Install required libraries:\n"
        "#    pip install beautifulsoup4\n"
        "\n"
        "# --- Script ---\n"
        f"file_name = {python_string_literal(source_file_name)}\n"
        "\n"
        "try:\n"
        '    with open(file_name, "r", encoding="utf-8") as f:\n'
        "        html_content = f.read()\n"
        "except FileNotFoundError:\n"
        "    print(f\"Error: The file '{file_name}' was not found.\")\n"
        "    print(\"Please make sure it's in the same directory as this Python script.\")\n"
        "    sys.exit(1)\n"
        "\n"
        'soup = BeautifulSoup(html_content, "html.parser")\n'
    )


def build_structured_extraction(plan: StructuredPlan) -> str:
    lines = [
        "",
        "# Find all the container elements",
        f"container_selector = {python_string_literal(plan.container_selector)}",
        "containers = soup.select(container_selector)",
        'print(f"Found {len(containers)} containers.")',
        "",
        "# --- Extract data from each container ---",
        "field_names = [" + ", ".join(python_string_literal(field.name) for field in plan.fields) + "]",
        "all_items = []",
        "for container in containers:",
        "    item = {}",
    ]
    for field in plan.fields:
        lines.append(f"    field_element = container.select_one({python_string_literal(field.selector)})")
        lines.append(
            f"    item[{python_string_literal(field.name)}] = "
            "field_element.get_text(strip=True) if field_element else None"
        )
    lines.append("    all_items.append(item)")
    return "\n".join(lines) + "\n"


def build_simple_extraction(plan: SimplePlan) -> str:
    lines = [
        "",
        "# Find all matching elements on the page",
        f"field_name = {python_string_literal(plan.field_name)}",
        f"selector = {python_string_literal(plan.selector)}",
        "elements = soup.select(selector)",
        'print(f"Found {len(elements)} matching elements.")',
        "",
        "# Extract the text content from each element",
        "extracted_data = [el.get_text(strip=True) for el in elements]",
    ]
    return "\n".join(lines) + "\n"


def python_string_literal(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'
