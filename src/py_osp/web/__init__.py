"""JSON web API for PyOSP.

This package provides a Flask application that drives a simulated
kernel over HTTP.  It is an **optional** extra — install with::

    pip install py-osp[web]
"""
