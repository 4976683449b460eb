"""paycron - scheduled Lightning payments over LNURL-pay."""

__version__ = "0.1.0"
