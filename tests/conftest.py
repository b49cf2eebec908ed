from __future__ import annotations

import os

os.environ.setdefault("JWT_SIGNING_KEY", "test-signing-key")
os.environ.setdefault("S3_BUCKET", "tubely-test")
os.environ.setdefault("S3_REGION", "us-east-2")
