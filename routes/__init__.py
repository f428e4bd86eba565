def register_routes(app):
    from medicines.medicine_routes import bp as medicine_bp
    app.register_blueprint(medicine_bp, url_prefix="/medicines")

    from stock_transactions.stock_routes import bp as stock_bp
    app.register_blueprint(stock_bp, url_prefix="/stock")

    from patients.patient_routes import bp as patient_bp
    app.register_blueprint(patient_bp, url_prefix="/patients")

    from sales.sales_routes import bp as sales_bp
    app.register_blueprint(sales_bp, url_prefix="/sales")

    from settings.settings_routes import bp as settings_bp
    app.register_blueprint(settings_bp, url_prefix="/settings")

    from reports.report_routes import bp as dashboard_bp
    app.register_blueprint(dashboard_bp, url_prefix="/dashboard")
