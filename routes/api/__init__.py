# routes/api/__init__.py
"""
Onboarding JSON API Package

Splits the API routes into logical modules:
- errors.py: JSON error handlers for the whole blueprint
- catalog.py: Health, steps, public config and employees
- documents.py: Template analyze and document generation
- esign.py: Send for signature and eSign diagnostics
- debug.py: Upload relay redirect probe
"""

from flask import Blueprint

# Create the blueprint - all sub-modules will register routes on this
api_bp = Blueprint('api', __name__, url_prefix='/api')

# Import all route modules AFTER blueprint creation
from . import errors
from . import catalog
from . import documents
from . import esign
from . import debug
