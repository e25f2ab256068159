"""
Sklad snippet vault
Copyright (c) 2025

A tray-resident store of text snippets organized in folders. Snippets marked
secret are encrypted at rest with a key derived from the master password and
can only be copied while the vault is unlocked. All data stays on this device.
"""
