"""Entry point launcher - runs ldoc_launcher.cli as a module"""
import runpy

if __name__ == "__main__":
    # Run ldoc_launcher.cli as a module - this allows proper package imports without path hacks
    runpy.run_module("ldoc_launcher.cli", run_name="__main__")
