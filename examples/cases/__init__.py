"""
Sample acceptance cases.

Run them with::

    webaccept --cases-package examples.cases --base-url https://shop.example.com -c Login -c Search
"""
