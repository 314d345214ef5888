"""Tests unitarios para identificadores compuestos y cursores."""

import pytest

from marketplace_sync.utils.id_utils import (
    extract_next_page_token,
    graphql_to_rest_id,
    join_composite_id,
    split_composite_id,
)


class TestCompositeId:
    """Tests del identificador "{productId}-{variantId}"."""

    def test_join(self):
        assert join_composite_id(111, 201) == "111-201"

    def test_join_accepts_gids(self):
        assert join_composite_id("gid://shopify/Product/111", "gid://shopify/ProductVariant/201") == "111-201"

    def test_split_composite(self):
        assert split_composite_id("111-201") == ("111", "201")

    def test_split_bare_product_id(self):
        """Un id sin variante debe devolver variant_id None."""
        assert split_composite_id("111") == ("111", None)

    def test_split_gid(self):
        assert split_composite_id("gid://shopify/Product/111") == ("111", None)

    @pytest.mark.parametrize("value", ["", "   ", "abc", "111-", "111-abc", "-201"])
    def test_split_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            split_composite_id(value)


class TestGraphqlToRestId:
    def test_numeric_passthrough(self):
        assert graphql_to_rest_id("123") == "123"

    def test_gid(self):
        assert graphql_to_rest_id("gid://shopify/Order/987") == "987"

    def test_empty(self):
        assert graphql_to_rest_id("") == ""


class TestExtractNextPageToken:
    """Tests del parser del header Link."""

    def test_next_only(self):
        header = '<https://shop.myshopify.com/admin/api/2024-10/products.json?limit=50&page_info=abc123>; rel="next"'
        assert extract_next_page_token(header) == "abc123"

    def test_previous_and_next(self):
        header = (
            '<https://shop.myshopify.com/admin/api/2024-10/products.json?page_info=prev1&limit=50>; rel="previous", '
            '<https://shop.myshopify.com/admin/api/2024-10/products.json?page_info=next2&limit=50>; rel="next"'
        )
        assert extract_next_page_token(header) == "next2"

    def test_previous_only(self):
        """En la última página no debe haber cursor."""
        header = '<https://shop.myshopify.com/admin/api/2024-10/products.json?page_info=prev1>; rel="previous"'
        assert extract_next_page_token(header) is None

    def test_missing_header(self):
        assert extract_next_page_token(None) is None
