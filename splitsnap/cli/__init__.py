"""Unified command-line interface for splitsnap.

Usage:
    splitsnap scan <image>
    splitsnap scan <image> --mode region --region 10,400,600,300 --display 800x1200
    splitsnap split 8.99 3.50 --assign 1=a --tax 1.00 --tip 18
    splitsnap serve [--port]
"""
