"""Run live emoji overlay.

Usage:
    uvicorn api.main:app --reload  # (separate, for API)
    python scripts/live_overlay.py  # (to see camera overlay window)
    python scripts/live_overlay.py --mock --facing environment

Press 'q' to quit the window, 's' to switch camera.
"""
import argparse
import logging

from emoji_fusion.config import Settings
from emoji_fusion.live import run_live_overlay

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--camera", type=int, default=None, help="Camera index for the front (user) camera")
    p.add_argument("--facing", choices=["user", "environment"], default=None, help="Initial camera facing")
    p.add_argument("--mock", action="store_true", help="Skip the face detector; random emotions")
    args = p.parse_args()

    s = Settings()
    if args.mock:
        s.ESTIMATOR_MODE = "mock"
    logging.basicConfig(level=getattr(logging, s.LOG_LEVEL.upper(), logging.DEBUG))
    run_live_overlay(s, camera_index=args.camera, facing=args.facing)

if __name__ == '__main__':
    main()
