"""
Assembly compiler (asmc) - compiles a small assembly language to an
intermediate instruction table and runs it on a register/memory machine.
"""

__version__ = "0.1.0"
__author__ = "asmc project"
