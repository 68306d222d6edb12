"""
Bundled grid definitions for geofacet-grid.

Contains YAML files, one per named grid, each listing the cells
(code, name, row, col) of that grid. The registry module in the parent
package reads these files at startup.
"""
