import dash
from dash import dcc, html, Input, Output, State, dash_table
import pandas as pd
import random

from distributor import FuelDistributor, MIN_DISPENSE
from forms import build_config, FormValidationError
from mileage import accrue_mileage
from models import FUEL_TYPES, FUEL_LABELS
from report import vehicle_tables, fuel_summary, daily_volume_figure

# Initialize Dash app
app = dash.Dash(__name__, suppress_callback_exceptions=True)
server = app.server
app.title = "Fleet Fuel Distribution"

CARD_STYLE = {'backgroundColor': 'white', 'padding': '20px', 'borderRadius': '10px', 'marginBottom': '20px'}
INPUT_STYLE = {'width': '100%', 'padding': '8px'}
BUTTON_STYLE = {'padding': '10px 16px', 'border': 'none', 'borderRadius': '5px', 'cursor': 'pointer', 'color': 'white'}
ERROR_STYLE = {'backgroundColor': '#fee2e2', 'color': '#991b1b', 'padding': '10px', 'borderRadius': '5px', 'marginBottom': '10px'}
WARNING_STYLE = {'backgroundColor': '#fff3cd', 'padding': '10px', 'borderRadius': '5px', 'marginBottom': '10px'}

EMPTY_VEHICLE = {'plate': '', 'tank_capacity': None, 'fuel_type': 'gasoline'}


# Helper functions
def parse_number_list(text):
    """'40, 35.5; 42' -> [40.0, 35.5, 42.0]"""
    values = []
    for part in str(text or '').replace(';', ',').replace('\n', ',').split(','):
        part = part.strip()
        if part:
            values.append(float(part))
    return values


def error_box(messages):
    return html.Div([html.P(f"❌ {m}", style={'margin': '2px'}) for m in messages], style=ERROR_STYLE)


def fuel_input(fuel):
    return html.Div([
        html.Label(f"{FUEL_LABELS[fuel]} (L)"),
        dcc.Input(id=f'volume-{fuel}', type='number', min=0, value=0, style=INPUT_STYLE),
    ], style={'width': '23%', 'display': 'inline-block', 'marginRight': '2%'})


def distribution_layout():
    return html.Div([
        html.Div([
            html.H3("⛽ Available Fuel", style={'marginBottom': '15px'}),
            html.Div([fuel_input(f) for f in FUEL_TYPES]),
            html.Div([
                html.Div([
                    html.Label("📅 Days in Month"),
                    dcc.Input(id='horizon-days', type='number', min=1, step=1, value=30, style=INPUT_STYLE),
                ], style={'width': '23%', 'display': 'inline-block', 'marginRight': '2%'}),
                html.Div([
                    html.Label("🎲 Seed (optional)"),
                    dcc.Input(id='seed', type='number', step=1, style=INPUT_STYLE),
                ], style={'width': '23%', 'display': 'inline-block', 'marginRight': '2%'}),
                html.Div([
                    dcc.Checklist(id='randomize-days',
                                  options=[{'label': ' Randomize refuel days', 'value': 'yes'}],
                                  value=[]),
                ], style={'width': '48%', 'display': 'inline-block', 'verticalAlign': 'bottom'}),
            ], style={'marginTop': '15px'}),
        ], style=CARD_STYLE),

        html.Div([
            html.H3("🚚 Vehicles", style={'marginBottom': '15px'}),
            dash_table.DataTable(
                id='vehicle-table',
                columns=[
                    {'name': 'Plate', 'id': 'plate', 'type': 'text'},
                    {'name': 'Tank Capacity (L)', 'id': 'tank_capacity', 'type': 'numeric'},
                    {'name': 'Fuel Type', 'id': 'fuel_type', 'presentation': 'dropdown'},
                ],
                data=[dict(EMPTY_VEHICLE)],
                editable=True,
                row_deletable=True,
                dropdown={'fuel_type': {'options': [{'label': FUEL_LABELS[f], 'value': f} for f in FUEL_TYPES]}},
                style_cell={'textAlign': 'left', 'padding': '8px'},
                style_header={'fontWeight': 'bold', 'backgroundColor': '#f3f4f6'},
            ),
            html.Button('➕ Add Vehicle', id='add-vehicle-btn', n_clicks=0,
                        style={**BUTTON_STYLE, 'backgroundColor': '#16a34a', 'marginTop': '10px'}),
        ], style=CARD_STYLE),

        html.Button('⚙️ Generate Distribution', id='run-btn', n_clicks=0,
                    style={**BUTTON_STYLE, 'backgroundColor': '#4f46e5', 'width': '100%', 'marginBottom': '20px'}),

        html.Div(id='distribution-messages'),
        dcc.Tabs(id='result-tabs', value='vehicles', children=[
            dcc.Tab(label='🚚 Per Vehicle', value='vehicles'),
            dcc.Tab(label='📈 Daily Volume', value='chart'),
            dcc.Tab(label='⛽ Fuel Summary', value='fuel'),
            dcc.Tab(label='📋 Event Log', value='events'),
        ]),
        html.Div(id='result-content', style={'marginTop': '20px'}),
        html.Button('⬇️ Download CSV', id='download-btn', n_clicks=0,
                    style={**BUTTON_STYLE, 'backgroundColor': '#1f2937', 'marginTop': '10px'}),
        dcc.Download(id='download-csv'),
        dcc.Store(id='allocation-store'),
    ])


def mileage_layout():
    return html.Div([
        html.Div([
            html.H3("🛣️ Mileage Generator", style={'marginBottom': '15px'}),
            html.Div([
                html.Div([
                    html.Label("Starting Odometer (km)"),
                    dcc.Input(id='start-km', type='number', min=0, value=0, style=INPUT_STYLE),
                ], style={'width': '48%', 'display': 'inline-block', 'marginRight': '2%'}),
                html.Div([
                    html.Label("Average km/L"),
                    dcc.Input(id='average-km', type='number', min=0, value=10, style=INPUT_STYLE),
                ], style={'width': '48%', 'display': 'inline-block'}),
            ]),
            html.Label("Refuel volumes in liters (comma separated)", style={'marginTop': '15px', 'display': 'block'}),
            dcc.Textarea(id='refuel-volumes', value='', style={'width': '100%', 'height': '60px'}),
            html.Label("km/L values to avoid (comma separated)", style={'marginTop': '15px', 'display': 'block'}),
            dcc.Input(id='excluded-km', type='text', value='', style=INPUT_STYLE),
            html.Button('⚙️ Generate Mileage', id='mileage-btn', n_clicks=0,
                        style={**BUTTON_STYLE, 'backgroundColor': '#4f46e5', 'width': '100%', 'marginTop': '15px'}),
        ], style=CARD_STYLE),
        html.Div(id='mileage-content'),
    ])


# Layout
app.layout = html.Div([
    # Header
    html.Div([
        html.H1("⛽ Fleet Fuel Distribution", style={'color': 'white', 'margin': '0'}),
        html.H3("Monthly refuel simulator", style={'color': '#cccccc', 'margin': '10px 0 0 0'}),
    ], style={'backgroundColor': '#1f2937', 'padding': '20px', 'marginBottom': '20px'}),

    html.Div([
        dcc.Tabs(id='tabs', value='distribution', children=[
            dcc.Tab(label='⛽ Fuel Distribution', value='distribution', children=[distribution_layout()]),
            dcc.Tab(label='🛣️ Mileage Generator', value='mileage', children=[mileage_layout()]),
        ]),
    ], style={'padding': '20px', 'maxWidth': '1400px', 'margin': '0 auto'}),
])


@app.callback(
    Output('vehicle-table', 'data'),
    Input('add-vehicle-btn', 'n_clicks'),
    State('vehicle-table', 'data')
)
def add_vehicle(n_clicks, rows):
    rows = rows or []
    if n_clicks:
        rows.append(dict(EMPTY_VEHICLE))
    return rows


@app.callback(
    [Output('allocation-store', 'data'),
     Output('distribution-messages', 'children')],
    Input('run-btn', 'n_clicks'),
    [State('vehicle-table', 'data'),
     State('horizon-days', 'value'),
     State('randomize-days', 'value'),
     State('seed', 'value')] +
    [State(f'volume-{f}', 'value') for f in FUEL_TYPES],
    prevent_initial_call=True
)
def run_distribution(n_clicks, vehicle_rows, horizon_days, randomize, seed, *volumes):
    payload = {
        'vehicles': vehicle_rows,
        'horizon_days': horizon_days,
        'randomize_days': 'yes' in (randomize or []),
        'seed': seed,
    }
    payload.update(dict(zip(FUEL_TYPES, volumes)))

    try:
        cfg = build_config(payload)
    except FormValidationError as e:
        return None, error_box(e.errors)

    sim = FuelDistributor(cfg)
    result = sim.run()
    print(f"✅ Distribution generated: {len(result.records)} refuels over {result.horizon_days} days")

    messages = []
    if not result.complete:
        leftover = ", ".join(f"{FUEL_LABELS[f]}: {v:,.2f} L" for f, v in result.leftover.items() if v > 0)
        messages.append(html.Div(
            f"⚠️ Some fuel could not be dispensed without breaking the {MIN_DISPENSE:g} L minimum "
            f"or tank capacity ({leftover}).", style=WARNING_STYLE))

    store = {
        'tables': {plate: t.to_dict('records') for plate, t in vehicle_tables(result).items()},
        'fuel_summary': fuel_summary(result).to_dict('records'),
        'figure': daily_volume_figure(result).to_dict(),
        'events': result.event_log,
    }
    return store, html.Div(messages)


def render_vehicle_tables(tables):
    blocks = []
    for plate, records in tables.items():
        blocks.append(html.Div([
            html.H4(f"Plate: {plate}"),
            dash_table.DataTable(
                data=records,
                columns=[{"name": c, "id": c} for c in ["Day", "Fuel Type", "Quantity (L)"]],
                style_cell={'textAlign': 'center', 'padding': '8px'},
                style_header={'fontWeight': 'bold', 'backgroundColor': '#f3f4f6'},
                style_data_conditional=[{
                    'if': {'filter_query': '{Day} = "Total"'},
                    'backgroundColor': '#e5e7eb', 'fontWeight': 'bold'
                }],
            ),
        ], style={'marginBottom': '20px'}))
    return html.Div(blocks)


@app.callback(
    Output('result-content', 'children'),
    [Input('result-tabs', 'value'),
     Input('allocation-store', 'data')]
)
def render_result(active_tab, store):
    if not store:
        return html.Div("Fill in the form and generate a distribution.")

    if active_tab == 'vehicles':
        return render_vehicle_tables(store['tables'])

    elif active_tab == 'chart':
        return dcc.Graph(figure=store['figure'])

    elif active_tab == 'fuel':
        summary = store['fuel_summary']
        return dash_table.DataTable(
            data=summary,
            columns=[{"name": c, "id": c} for c in summary[0].keys()] if summary else [],
            style_cell={'textAlign': 'left', 'padding': '8px'},
            style_header={'fontWeight': 'bold', 'backgroundColor': '#f3f4f6'},
        )

    elif active_tab == 'events':
        events = store['events']
        cols = ['Day', 'Level', 'Event', 'Vehicle', 'Fuel', 'Message']
        return html.Div([
            html.H3(f"📋 Event Log ({len(events)} rows)"),
            dash_table.DataTable(
                data=events,
                columns=[{"name": c, "id": c} for c in cols],
                page_action='native',
                page_size=50,
                style_table={'overflowX': 'auto'},
                style_cell={'textAlign': 'left', 'padding': '8px', 'minWidth': '100px'},
                style_header={'fontWeight': 'bold', 'backgroundColor': '#f3f4f6'},
                sort_action='native',
                filter_action='native'
            )
        ])

    return html.Div("Select a tab")


@app.callback(
    Output('download-csv', 'data'),
    Input('download-btn', 'n_clicks'),
    State('allocation-store', 'data'),
    prevent_initial_call=True
)
def download_csv(n_clicks, store):
    if not store:
        return None
    frames = []
    for plate, records in store['tables'].items():
        df = pd.DataFrame(records)
        df.insert(0, 'Plate', plate)
        frames.append(df)
    return dcc.send_data_frame(pd.concat(frames, ignore_index=True).to_csv, "fuel_distribution.csv", index=False)


@app.callback(
    Output('mileage-content', 'children'),
    Input('mileage-btn', 'n_clicks'),
    [State('start-km', 'value'),
     State('average-km', 'value'),
     State('refuel-volumes', 'value'),
     State('excluded-km', 'value')],
    prevent_initial_call=True
)
def run_mileage(n_clicks, start_km, average_km, volumes_text, excluded_text):
    errors = []
    if start_km is None or start_km < 0:
        errors.append("The starting odometer must be 0 or more")
    if average_km is None or average_km < 0:
        errors.append("The average km/L must be 0 or more")
    try:
        volumes = parse_number_list(volumes_text)
        excluded = parse_number_list(excluded_text)
    except ValueError:
        errors.append("Volumes and km/L values must be numbers")
        volumes, excluded = [], []
    if not volumes:
        errors.append("Add at least one refuel")
    elif any(v < 0 for v in volumes):
        errors.append("Refuel volumes must be 0 or more")
    if errors:
        return error_box(errors)

    try:
        rows = accrue_mileage(start_km, average_km, volumes, rng=random.Random(), excluded=excluded)
    except ValueError as e:
        return error_box([str(e)])

    df = pd.DataFrame(rows).rename(columns={
        'liters': 'Liters', 'km_per_liter': 'km/L', 'total_km': 'Total km', 'final_km': 'Final km'})
    return html.Div([
        dash_table.DataTable(
            data=df.to_dict('records'),
            columns=[{"name": c, "id": c} for c in df.columns],
            style_cell={'textAlign': 'left', 'padding': '8px'},
            style_header={'fontWeight': 'bold', 'backgroundColor': '#f3f4f6'},
        )
    ], style=CARD_STYLE)


# Run the app
if __name__ == '__main__':
    app.run(debug=True, port=8051)
