"""grailsc - incremental Groovy/Java compiler driver for Grails builds."""

__version__ = "0.3.0"
