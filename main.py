#!/usr/bin/env python3
"""
Soundy - Main Entry Point

Run this file to start the console:
    python main.py
"""

from soundy.cli import main


if __name__ == "__main__":
    main()
