"""
Utility modules for eigo-ms.

    - timeit.py: Duration measurement for log lines and metrics
"""
