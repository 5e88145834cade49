"""
Pipeline stages package.

Each stage module follows a consistent pattern:
- Docstring with Input/Output documented
- Pure functions that take a table and return a new result
- main() function as the entry point, printing progress and QA
"""
