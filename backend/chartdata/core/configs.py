"""
Built-in chart configurations for the procurement spend dashboard.

All three charts aggregate `spend_transactions`; they differ in the dimension
they group by and in the runtime parameters they accept.
"""

from .schema import (
    ChartConfiguration,
    ChartType,
    FilterRule,
    JoinClause,
    ParameterFilter,
    ParameterSpec,
    ParameterType,
)

SPEND_TOTAL = "SUM(spend_transactions.total_amount)"

VENDOR_JOIN = JoinClause(
    target="vendors",
    predicate="spend_transactions.vendor_id = vendors.vendor_id",
)


DEFAULT_CHART_CONFIGS: tuple[ChartConfiguration, ...] = (

    # -------------------------------------------------------------------------
    # 1. Top Commodities
    # -------------------------------------------------------------------------
    ChartConfiguration(
        chart_id="top_commodities_bar",
        chart_name="Top Commodities",
        chart_type=ChartType.horizontal_bar,
        base_table="spend_transactions",
        join_clauses=(
            JoinClause(
                target="commodities",
                predicate="spend_transactions.commodity_id = commodities.commodity_id",
            ),
        ),
        group_by_expression="commodities.commodity_description",
        value_expression=SPEND_TOTAL,
        label_expression="commodities.commodity_description",
        parameter_schema={
            "limit": ParameterSpec(type=ParameterType.number, default=10, max=50, integer=True),
            "date_range": ParameterSpec(
                type=ParameterType.date_range,
                default=None,
                filter=ParameterFilter(column="spend_transactions.transaction_date", operator="between"),
            ),
            "min_amount": ParameterSpec(
                type=ParameterType.number,
                default=None,
                filter=ParameterFilter(column="spend_transactions.total_amount", operator=">="),
            ),
        },
        chart_options={
            "colors": ("#3498DB", "#E74C3C", "#2ECC71", "#F39C12", "#9B59B6"),
            "showValues": True,
            "responsive": True,
        },
    ),

    # -------------------------------------------------------------------------
    # 2. Vendor Spend Analysis
    # -------------------------------------------------------------------------
    ChartConfiguration(
        chart_id="vendor_spend_analysis",
        chart_name="Vendor Spend Analysis",
        chart_type=ChartType.pie,
        base_table="spend_transactions",
        join_clauses=(VENDOR_JOIN,),
        group_by_expression="vendors.vendor_name",
        value_expression=SPEND_TOTAL,
        label_expression="vendors.vendor_name",
        parameter_schema={
            "limit": ParameterSpec(type=ParameterType.number, default=5, integer=True),
            "state_filter": ParameterSpec(
                type=ParameterType.string,
                default=None,
                filter=ParameterFilter(column="vendors.state", operator="="),
            ),
        },
        chart_options={
            "colors": ("#D2524F", "#5B9BD5", "#70AD47", "#E59C39", "#9B59B6"),
            "innerRadius": 0,
            "showPercentages": True,
        },
    ),

    # -------------------------------------------------------------------------
    # 3. Geographic Distribution
    # -------------------------------------------------------------------------
    ChartConfiguration(
        chart_id="geographic_distribution",
        chart_name="Geographic Distribution",
        chart_type=ChartType.donut,
        base_table="spend_transactions",
        join_clauses=(VENDOR_JOIN,),
        group_by_expression="vendors.state",
        value_expression=SPEND_TOTAL,
        label_expression="vendors.state",
        filter_rules=(
            FilterRule(column="vendors.state", applies_when_grouped_by="state"),
        ),
        parameter_schema={
            "limit": ParameterSpec(type=ParameterType.number, default=5, integer=True),
            "exclude_states": ParameterSpec(
                type=ParameterType.array,
                default=(),
                item_type=ParameterType.string,
                filter=ParameterFilter(column="vendors.state", operator="not_in"),
            ),
        },
        chart_options={
            "colors": ("#70AD47", "#5B9BD5", "#E59C39", "#9B59B6", "#D2524F"),
            "innerRadius": 60,
            "outerRadius": 120,
        },
    ),
)
