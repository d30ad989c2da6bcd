"""Example apps wiring the starbknd runtime into FastHTML pages."""
