from __future__ import annotations

import os

# Settings are built at import time; give them a project that is never contacted.
os.environ.setdefault("SUPABASE_URL", "https://cuisineo-test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
