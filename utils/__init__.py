# Utils package for the storefront backend

# ruff: noqa: F403
from .transaction_utils import *
