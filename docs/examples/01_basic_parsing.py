"""
Example 1: Basic CSV Parsing

Learn the fundamentals of csv-guardian with a small user export.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, Field

from csv_guardian import fields, parse_content, parse_row


class User(BaseModel):
    user_id: fields.integer(Annotated[int, Field(ge=1)])
    username: fields.string()
    email: fields.string(Annotated[str, Field(pattern=r"^[\w\.-]+@[\w\.-]+\.\w+$")])
    age: fields.integer(Annotated[int, Field(ge=18, le=120)])
    is_active: fields.boolean()
    nickname: fields.string(Optional[str]) = None


CSV_TEXT = """user_id,username,email,age,is_active,nickname
1,alice,alice@example.com,34,true,
2,bob,bob@test.org,17,false,bobby
3,"charlie, jr",charlie@example.com,45,true,
4,diana,not-an-email,29,yes,
"""


def main():
    """Demonstrate the batch and single-row workflow."""
    print("=" * 80)
    print("Example 1: Basic CSV Parsing")
    print("=" * 80)
    print()

    print("Step 1: Parsing the whole document...")
    result = parse_content(CSV_TEXT, User)
    print(f"Header: {result.header}")
    print(f"Rows read: {len(result.all_rows)}, valid: {len(result.valid_rows)}")
    print()

    print("Step 2: Valid rows")
    for user in result.valid_rows:
        print(f"  ✓ {user.model_dump()}")
    print()

    print("Step 3: Row errors")
    if result.errors is not None and result.errors.rows:
        for index, error in result.errors.rows.items():
            print(f"  ✗ row {index}: {result.all_rows[index]}")
            for issue in error.errors(include_url=False):
                print(f"      {'.'.join(map(str, issue['loc']))}: {issue['msg']}")
    print()

    print("Step 4: Validating a single line...")
    row = parse_row('5,"eve",eve@example.com,52,false,', User)
    print(f"  success={row.success} row={row.row}")
    print()


if __name__ == "__main__":
    main()
