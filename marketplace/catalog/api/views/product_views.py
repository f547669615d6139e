import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.catalog.api.serializers import ProductDetailSerializer, ProductListSerializer
from marketplace.services import CatalogService, ErrorCodes


logger = logging.getLogger(__name__)


class ProductViewSet(viewsets.ViewSet):
    """
    Read-only product catalogue backed by CatalogService.
    """

    permission_classes = [AllowAny]
    lookup_value_regex = r"[^/]+"

    def get_service(self) -> CatalogService:
        return container.catalog_service()

    @extend_schema(
        operation_id="products_list",
        summary="List products",
        responses={
            200: ProductListSerializer(many=True),
            503: OpenApiResponse(response=ErrorResponseSerializer, description="Database unavailable"),
        },
        tags=["Marketplace - Products"],
    )
    def list(self, request):
        result = self.get_service().list_products()
        if not result.ok:
            return Response(
                {"error": result.error, "detail": result.error_detail}, status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        return Response(ProductListSerializer(result.value, many=True).data)

    @extend_schema(
        operation_id="products_featured",
        summary="Featured products for the home page",
        responses={200: ProductListSerializer(many=True)},
        tags=["Marketplace - Products"],
    )
    @action(detail=False, methods=["get"])
    def featured(self, request):
        result = self.get_service().list_featured()
        if not result.ok:
            return Response(
                {"error": result.error, "detail": result.error_detail}, status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        return Response(ProductListSerializer(result.value, many=True).data)

    @extend_schema(
        operation_id="products_retrieve",
        summary="Get product details",
        responses={
            200: ProductDetailSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
            503: OpenApiResponse(response=ErrorResponseSerializer, description="Database unavailable"),
        },
        tags=["Marketplace - Products"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_product(pk)

        if not result.ok:
            if result.error == ErrorCodes.PRODUCT_NOT_FOUND:
                return Response(
                    {"error": result.error, "detail": result.error_detail}, status=status.HTTP_404_NOT_FOUND
                )
            return Response(
                {"error": result.error, "detail": result.error_detail}, status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        return Response(ProductDetailSerializer(result.value).data)
