import os
import logging
from flask import Flask, render_template, request, redirect, url_for, flash, jsonify, send_file
from analytics import summarize, class_average_bars, histogram_bars
from excel_handler import ExcelHandler
from gateway import get_gateway, close_gateway
from models import GENDER_CHOICES, SORT_FIELDS, SORT_LABELS, display_label
from roster import ListQuery, search_students, class_options, find_student
from student_form import StudentForm, CREATE, EDIT, SUCCESS

# Set up logging
logging.basicConfig(level=logging.DEBUG)

app = Flask(__name__)
app.secret_key = os.environ.get("SESSION_SECRET", "dev-secret-key-change-in-production")

# Configuration
EXPORT_FOLDER = os.environ.get("EXPORT_FOLDER", 'exports')

app.config['RECORD_GATEWAY_URL'] = os.environ.get("RECORD_GATEWAY_URL", "http://localhost:3001")
app.config['RECORD_GATEWAY_TIMEOUT'] = float(os.environ.get("RECORD_GATEWAY_TIMEOUT", 10))
app.config['EXPORT_FOLDER'] = EXPORT_FOLDER
app.config['SUCCESS_REDIRECT_DELAY_MS'] = int(os.environ.get("SUCCESS_REDIRECT_DELAY_MS", 900))

# Ensure directories exist
os.makedirs(EXPORT_FOLDER, exist_ok=True)


@app.teardown_appcontext
def teardown_gateway(exception):
    close_gateway()


@app.context_processor
def inject_choices():
    return {
        'gender_choices': GENDER_CHOICES,
        'sort_fields': SORT_FIELDS,
        'sort_labels': SORT_LABELS,
        'display_label': display_label,
    }


def excel_handler():
    return ExcelHandler(app.config['EXPORT_FOLDER'])


def refresh_roll_snapshot():
    """Reload the records the add form checks roll numbers against"""
    result = get_gateway().list_students()
    if result.success:
        app.config['ROLL_NUMBER_SNAPSHOT'] = result.data['students']
    else:
        logging.error(f"Error refreshing roll numbers: {result.message}")
    return app.config.get('ROLL_NUMBER_SNAPSHOT', [])


def render_form(form, status_code=200):
    redirect_url = None
    if form.state == SUCCESS:
        redirect_url = url_for('students')
    return render_template('student_form.html',
                           form=form,
                           redirect_url=redirect_url,
                           redirect_delay_ms=app.config['SUCCESS_REDIRECT_DELAY_MS']), status_code


@app.route('/')
def index():
    return render_template('index.html')


@app.route('/dashboard')
@app.route('/students')
def students():
    """Student list with sort, filters and search"""
    query = ListQuery.from_args(request.args)
    search = request.args.get('q', '')

    try:
        result = get_gateway().list_students(**query.gateway_params())
        if result.success:
            app.config['ROSTER_SNAPSHOT'] = result.data['students']
        else:
            flash('Error fetching students.', 'error')
    except Exception as e:
        logging.error(f"Error loading students: {str(e)}")
        flash('Error fetching students.', 'error')

    # On failure the previous list stays on screen
    students_data = app.config.get('ROSTER_SNAPSHOT', [])

    # Every row is rendered; ?q= only hides rows so typing can bring them back
    return render_template('students.html',
                           students=students_data,
                           matching_ids=[str(s['id']) for s in search_students(students_data, search)],
                           total=len(students_data),
                           query=query,
                           search=search,
                           classes=class_options(students_data))


@app.route('/students/export')
def export_students():
    """Export the last fetched list, narrowed by the search box, to Excel"""
    try:
        students_data = search_students(app.config.get('ROSTER_SNAPSHOT', []), request.args.get('q', ''))
        if not students_data:
            flash('No student data to export', 'warning')
            return redirect(url_for('students'))

        filepath = excel_handler().export_students(students_data, request.args.get('sort_by'))
        if filepath and os.path.exists(filepath):
            filename = os.path.basename(filepath)
            return send_file(os.path.abspath(filepath), as_attachment=True, download_name=filename)

        flash('Error exporting students', 'error')
    except Exception as e:
        logging.error(f"Error exporting students: {str(e)}")
        flash('Error exporting students', 'error')

    return redirect(url_for('students'))


@app.route('/add', methods=['GET', 'POST'])
def add_student():
    """Add student form"""
    if request.method == 'GET':
        refresh_roll_snapshot()
        return render_form(StudentForm(CREATE))

    form = StudentForm.from_request(request.form, CREATE)
    try:
        existing = app.config.get('ROLL_NUMBER_SNAPSHOT')
        if existing is None:
            existing = refresh_roll_snapshot()

        if form.submit(get_gateway(), existing):
            refresh_roll_snapshot()
        return render_form(form)

    except Exception as e:
        logging.error(f"Error adding student: {str(e)}")
        form.fail('Network or server error.')
        return render_form(form)


@app.route('/students/<student_id>/edit', methods=['GET', 'POST'])
def edit_student(student_id):
    """Edit student form"""
    if request.method == 'GET':
        try:
            result = get_gateway().get_student(student_id)
        except Exception as e:
            logging.error(f"Error loading student {student_id}: {str(e)}")
            result = None

        if result is None or not result.success:
            form = StudentForm(EDIT, student_id=student_id)
            form.status = {'type': 'error', 'message': 'Could not load student data.'}
            status_code = 404 if result is not None and result.is_not_found else 200
            return render_form(form, status_code)

        return render_form(StudentForm.from_record(result.data['student']))

    form = StudentForm.from_request(request.form, EDIT, student_id=student_id)
    try:
        form.submit(get_gateway())
        return render_form(form)

    except Exception as e:
        logging.error(f"Error updating student: {str(e)}")
        form.fail('Network or server error.')
        return render_form(form)


@app.route('/students/<student_id>/delete', methods=['GET', 'POST'])
def delete_student(student_id):
    """Confirm, then delete a student"""
    if request.method == 'GET':
        student = find_student(app.config.get('ROSTER_SNAPSHOT', []), student_id)
        if student is None:
            result = get_gateway().get_student(student_id)
            if not result.success:
                flash(result.message or 'Student not found', 'error')
                return redirect(url_for('students'))
            student = result.data['student']
        return render_template('confirm_delete.html', student=student)

    try:
        result = get_gateway().delete_student(student_id)
        if result.success:
            flash('Student deleted.', 'success')
        else:
            flash(result.message or 'Failed to delete student', 'error')

    except Exception as e:
        logging.error(f"Error deleting student: {str(e)}")
        flash('Failed to delete student', 'error')

    return redirect(url_for('students'))


def load_summary():
    """Fetch every record by marks, highest first, and summarise it"""
    result = get_gateway().list_students(sort_by='marks', order='desc')
    if not result.success:
        return None
    return summarize(result.data['students'])


@app.route('/analytics')
def analytics():
    """Analytics and summary page"""
    fetch_error = None
    summary = None
    try:
        summary = load_summary()
        if summary is None:
            fetch_error = 'Could not fetch student records.'
    except Exception as e:
        logging.error(f"Error building analytics: {str(e)}")
        fetch_error = 'Could not fetch student records.'

    return render_template('analytics.html',
                           summary=summary,
                           fetch_error=fetch_error,
                           histogram=histogram_bars(summary) if summary else [],
                           class_bars=class_average_bars(summary) if summary else [])


@app.route('/analytics/export')
def export_analytics():
    """Export the analytics summary to Excel"""
    try:
        summary = load_summary()
        if summary is None:
            flash('Could not fetch student records.', 'error')
            return redirect(url_for('analytics'))

        filepath = excel_handler().export_summary(summary)
        if filepath and os.path.exists(filepath):
            filename = os.path.basename(filepath)
            return send_file(os.path.abspath(filepath), as_attachment=True, download_name=filename)

        flash('Error exporting analytics', 'error')
    except Exception as e:
        logging.error(f"Error exporting analytics: {str(e)}")
        flash('Error exporting analytics', 'error')

    return redirect(url_for('analytics'))


@app.route('/get_summary_data')
def get_summary_data():
    summary = load_summary()
    if summary is None:
        return jsonify({'success': False, 'message': 'Could not fetch student records.'}), 502
    return jsonify({'success': True, 'data': summary})


@app.errorhandler(404)
def page_not_found(e):
    return render_template('404.html'), 404


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000, debug=True)
