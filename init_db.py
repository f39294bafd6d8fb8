"""Print the Supabase schema for the exams table. Run it in the Supabase SQL Editor."""
import argparse

from db import EXAMS_TABLE, get_supabase_uncached

SCHEMA_SQL = f"""
-- Exam results, one row per logged practice exam
CREATE TABLE IF NOT EXISTS {EXAMS_TABLE} (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE DEFAULT auth.uid(),
    exam_name TEXT NOT NULL,
    exam_type VARCHAR(10) NOT NULL DEFAULT 'TYT' CHECK (exam_type IN ('TYT', 'BRANCH')),
    branch_name VARCHAR(10) CHECK (branch_name IN ('Turkish', 'Social', 'Math', 'Science')),
    turkish_net NUMERIC NOT NULL DEFAULT 0,
    social_net NUMERIC NOT NULL DEFAULT 0,
    math_net NUMERIC NOT NULL DEFAULT 0,
    science_net NUMERIC NOT NULL DEFAULT 0,
    total_net NUMERIC NOT NULL DEFAULT 0,
    history_correct INT CHECK (history_correct >= 0),
    history_incorrect INT CHECK (history_incorrect >= 0),
    geography_correct INT CHECK (geography_correct >= 0),
    geography_incorrect INT CHECK (geography_incorrect >= 0),
    philosophy_correct INT CHECK (philosophy_correct >= 0),
    philosophy_incorrect INT CHECK (philosophy_incorrect >= 0),
    religion_correct INT CHECK (religion_correct >= 0),
    religion_incorrect INT CHECK (religion_incorrect >= 0),
    physics_correct INT CHECK (physics_correct >= 0),
    physics_incorrect INT CHECK (physics_incorrect >= 0),
    chemistry_correct INT CHECK (chemistry_correct >= 0),
    chemistry_incorrect INT CHECK (chemistry_incorrect >= 0),
    biology_correct INT CHECK (biology_correct >= 0),
    biology_incorrect INT CHECK (biology_incorrect >= 0),
    CHECK ((exam_type = 'BRANCH') = (branch_name IS NOT NULL))
);

CREATE INDEX IF NOT EXISTS idx_{EXAMS_TABLE}_user_created ON {EXAMS_TABLE}(user_id, created_at DESC);

-- Row-level security: each user sees and adds only their own exams
ALTER TABLE {EXAMS_TABLE} ENABLE ROW LEVEL SECURITY;

CREATE POLICY "Users can read own exams" ON {EXAMS_TABLE}
    FOR SELECT USING (auth.uid() = user_id);

CREATE POLICY "Users can insert own exams" ON {EXAMS_TABLE}
    FOR INSERT WITH CHECK (auth.uid() = user_id);
"""


def main():
    parser = argparse.ArgumentParser(description="Print the exams schema; optionally check the table exists.")
    parser.add_argument("--check", action="store_true", help="Query the table with SUPABASE_URL / SUPABASE_KEY from .env")
    args = parser.parse_args()

    print("Run this SQL in Supabase SQL Editor (https://app.supabase.com > SQL Editor > New Query):")
    print(SCHEMA_SQL)

    if args.check:
        try:
            client = get_supabase_uncached()
            client.table(EXAMS_TABLE).select("id").limit(1).execute()
            print(f"✓ {EXAMS_TABLE} table is reachable")
        except Exception as e:
            print(f"✗ Could not query {EXAMS_TABLE}: {e}")
            print("Check .env has SUPABASE_URL and SUPABASE_KEY and that the SQL above was run")


if __name__ == "__main__":
    main()
