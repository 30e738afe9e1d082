"""Geometry validation for observation, grid and study-area layers."""

import geopandas as gpd

from ea_methods.validation.errors import GeometryError, InvalidInputError, ValidationError

POLYGON_TYPES = frozenset({"Polygon", "MultiPolygon"})
POINT_TYPES = frozenset({"Point"})


class GeometryValidator:
    """Validates in-memory GeoDataFrames before spatial processing.

    Checks are split in two families because they are reported differently:

    Geometry checks (reported as GeometryError):
    - Geometry column present
    - Geometry type (Polygon/MultiPolygon, or Point for point layers)
    - No null geometries
    - No invalid geometries (self-intersections, etc.)

    CRS checks (reported as InvalidInputError):
    - Both layers share the same CRS (no reprojection is performed)
    - The CRS, when defined, is projected so planar areas are meaningful
    """

    def __init__(self, allowed_types: frozenset[str] = POLYGON_TYPES):
        self.allowed_types = allowed_types

    def validate_geometries(self, gdf: gpd.GeoDataFrame, layer: str) -> list[ValidationError]:
        """Validate geometry column, types and topology.

        Args:
            gdf: Layer to validate
            layer: Layer name used in messages (e.g. "observations", "grid")

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not isinstance(gdf, gpd.GeoDataFrame) or gdf.geometry.name not in gdf.columns:
            errors.append(
                ValidationError(
                    message=f"{layer} has no active geometry column",
                    field=layer,
                )
            )
            return errors

        if gdf.empty:
            return errors

        null_count = int(gdf.geometry.isna().sum() + gdf.geometry.is_empty.sum())
        if null_count > 0:
            errors.append(
                ValidationError(
                    message=f"Found {null_count} null or empty geometries in {layer}",
                    field=layer,
                )
            )

        geom_types = set(gdf.geometry.dropna().geom_type.unique())
        invalid_types = geom_types - self.allowed_types
        if invalid_types:
            errors.append(
                ValidationError(
                    message=f"Invalid geometry types found in {layer}: "
                    f"{', '.join(sorted(invalid_types))}. "
                    f"Expected: {' or '.join(sorted(self.allowed_types))}",
                    field=layer,
                )
            )

        invalid_count = int((~gdf.geometry.dropna().is_valid).sum())
        if invalid_count > 0:
            errors.append(
                ValidationError(
                    message=f"Found {invalid_count} invalid geometries in {layer} "
                    f"(self-intersections, etc.)",
                    field=layer,
                )
            )

        return errors

    def validate_crs(
        self, left: gpd.GeoDataFrame, right: gpd.GeoDataFrame, left_name: str, right_name: str
    ) -> list[ValidationError]:
        """Validate that two layers share a projected CRS.

        Layers without a CRS are accepted as long as neither side defines
        one; coordinates are then taken to be metres.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if left.crs != right.crs:
            errors.append(
                ValidationError(
                    message=f"CRS mismatch: {left_name} is {left.crs}, "
                    f"{right_name} is {right.crs}. Reproject inputs to a common "
                    f"equal-area CRS first",
                    field="crs",
                )
            )
            return errors

        if left.crs is not None and left.crs.is_geographic:
            errors.append(
                ValidationError(
                    message=f"CRS {left.crs} is geographic; areas require a projected CRS "
                    f"in metres",
                    field="crs",
                )
            )

        return errors

    def check(
        self, left: gpd.GeoDataFrame, right: gpd.GeoDataFrame, left_name: str, right_name: str
    ) -> None:
        """Run all checks on a pair of layers and raise on the first failing family.

        Raises:
            GeometryError: If either layer has null, invalid or mistyped geometries
            InvalidInputError: If the layers do not share a projected CRS
        """
        geometry_errors = self.validate_geometries(left, left_name) + self.validate_geometries(
            right, right_name
        )
        if geometry_errors:
            raise GeometryError("; ".join(e.message for e in geometry_errors), geometry_errors)

        crs_errors = self.validate_crs(left, right, left_name, right_name)
        if crs_errors:
            raise InvalidInputError.from_errors(crs_errors)
