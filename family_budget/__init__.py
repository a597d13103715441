"""
Family Living Calculator

Monthly household budget for an Iraqi family: income, per-child
expenses and general costs, with the form saved locally. Runs in a
browser or as a mini-app inside the Super Qi host, where it logs the
user in with a platform token.
"""

__version__ = "1.0.0"
