"""Market Health: indicators, market statistics and health-check protocols."""
