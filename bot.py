#!/usr/bin/env python3
"""Run the RateRadar bot: ``BOT_TOKEN=... ALLOWED_CHAT_IDS=... python bot.py``."""
from rate_radar.main import run

if __name__ == "__main__":
    run()
