"""DataVista employee management GraphQL API"""

__version__ = "1.0.0"
