import io
import os
import sys
import tempfile
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'src' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

LOCAL_STORAGE = Path(tempfile.mkdtemp(prefix="image_api_storage_"))
SAMPLE_SOURCE = "samples/sample.png"
SAMPLE_ICC_PROFILE = b"not-a-real-icc-profile"

os.environ["ENV"] = "development"
os.environ.pop("CORS_ALLOW_LIST", None)
os.environ["SUPABASE_DISABLED"] = "1"
os.environ["SUPABASE_STORAGE_LOCAL_DIR"] = str(LOCAL_STORAGE)
os.environ["DEFAULT_INPUT_SOURCE"] = SAMPLE_SOURCE
os.environ["DEFAULT_OUTPUT_FORMAT"] = "png"
os.environ.setdefault("LOG_LEVEL", "DEBUG")


def make_png_bytes(w=8, h=6, color=(128, 64, 32), **save_options) -> bytes:
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = color
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format="PNG", **save_options)
    return buf.getvalue()


@pytest.fixture(scope="session", autouse=True)
def sample_image() -> Path:
    path = LOCAL_STORAGE / SAMPLE_SOURCE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(make_png_bytes(w=200, h=150, icc_profile=SAMPLE_ICC_PROFILE))
    return path


@pytest.fixture(scope="session")
def app():
    # lazy import after env configured
    from src.main import create_app

    return create_app()


@pytest.fixture(scope="session")
def client(app) -> TestClient:
    return TestClient(app)
