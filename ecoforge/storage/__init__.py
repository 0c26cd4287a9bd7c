"""Pluggable storage backends for artifact trees and run history."""
