"""ChartIR -> ECharts option compiler."""
