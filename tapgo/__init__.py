"""
                TapGo Ordering

Restaurant ordering backend: customer checkout, kitchen display feed and
admin console over a single table of order line items.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
