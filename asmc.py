#!/usr/bin/env python3
"""
Assembly compiler entry point.

Usage: python asmc.py program.asm [--tables] [--dump FILE] [--no-run]
"""

from asmc.compiler import main

if __name__ == '__main__':
    main()
