"""DiscoBar: punto de venta y administración para bar/discoteca."""

__version__ = '1.0.0'
