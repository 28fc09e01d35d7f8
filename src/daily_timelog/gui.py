from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

import tkinter as tk
from tkinter import filedialog, messagebox, ttk

from .export import write_csv
from .formatting import day_header, duration_string
from .forms import EditEntryForm, FormError, NewEntryForm, duration_warning, parse_day
from .models import Config, DailyLog, TaskEntry
from .store import LogStore

logger = logging.getLogger(__name__)

APP_NAME = "Time Tracker"


@dataclass
class FormState:
    entry_date: tk.StringVar
    project: tk.StringVar
    description: tk.StringVar
    duration: tk.StringVar


class TimeLogApp(ttk.Frame):
    def __init__(self, master: tk.Tk, store: LogStore, config: Config):
        super().__init__(master)
        self.master = master
        self.store = store
        self.config_ = config
        # Treeview item id -> entry currently shown in that row
        self.rows: dict[str, TaskEntry] = {}

        self.form_state = FormState(
            entry_date=tk.StringVar(value="today"),
            project=tk.StringVar(),
            description=tk.StringVar(),
            duration=tk.StringVar(),
        )
        for var in (self.form_state.entry_date, self.form_state.project,
                    self.form_state.description, self.form_state.duration):
            var.trace_add("write", lambda *_: self._update_add_button())

        self._build_ui()
        self.unsubscribe = store.subscribe(self._render)
        self._render(store.logs)
        self._update_add_button()

    # --- UI builders ---
    def _build_ui(self):
        self.master.title(APP_NAME)
        self.master.geometry("800x500")
        self.master.minsize(800, 500)

        menubar = tk.Menu(self.master)
        filemenu = tk.Menu(menubar, tearoff=0)
        filemenu.add_command(label="Export CSV…", command=self.on_export_csv)
        filemenu.add_separator()
        filemenu.add_command(label="Exit", command=self.on_close)
        menubar.add_cascade(label="File", menu=filemenu)
        self.master.config(menu=menubar)

        container = ttk.Frame(self.master, padding=10)
        container.pack(fill=tk.BOTH, expand=True)

        form = ttk.LabelFrame(container, text="New Entry")
        form.pack(fill=tk.X)

        fields = (
            ("Date", self.form_state.entry_date),
            ("Project Code", self.form_state.project),
            ("Subtask Description", self.form_state.description),
            ("Duration (min)", self.form_state.duration),
        )
        for column, (label, var) in enumerate(fields):
            ttk.Label(form, text=label).grid(row=0, column=column, sticky=tk.W, padx=6)
            ttk.Entry(form, textvariable=var).grid(
                row=1, column=column, sticky=tk.EW, padx=6, pady=6
            )
            form.columnconfigure(column, weight=1)

        self.add_btn = ttk.Button(form, text="Add Entry", command=self.on_add)
        self.add_btn.grid(row=1, column=len(fields), padx=6, pady=6)

        buttons = ttk.Frame(container)
        buttons.pack(fill=tk.X, pady=(6, 2))
        ttk.Button(buttons, text="Edit Selected", command=self.on_edit_selected).pack(
            side=tk.LEFT, padx=4
        )
        ttk.Button(buttons, text="Delete Selected", command=self.on_delete).pack(
            side=tk.LEFT, padx=4
        )

        table_frame = ttk.Frame(container)
        table_frame.pack(fill=tk.BOTH, expand=True, pady=6)

        cols = ("project", "description", "duration")
        self.tree = ttk.Treeview(table_frame, columns=cols, show="tree headings",
                                 selectmode="browse")
        self.tree.heading("#0", text="Day")
        self.tree.column("#0", width=200, anchor=tk.W)
        for c, w in zip(cols, (140, 320, 90)):
            self.tree.heading(c, text=c.title())
            self.tree.column(c, width=w, anchor=tk.W)
        self.tree.pack(fill=tk.BOTH, expand=True, side=tk.LEFT)

        vsb = ttk.Scrollbar(table_frame, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vsb.set)
        vsb.pack(side=tk.RIGHT, fill=tk.Y)

        self.tree.bind("<Double-1>", lambda e: self.on_edit_selected())
        self.tree.bind("<Delete>", lambda e: self.on_delete())
        self.master.bind("<Control-Return>", lambda e: self.on_add())

    # --- rendering ---
    def _render(self, logs: Sequence[DailyLog]):
        self.tree.delete(*self.tree.get_children())
        self.rows.clear()
        for log in logs:
            total = self.store.total_minutes(log)
            parent = self.tree.insert(
                "", tk.END, text=day_header(log, self.config_.date_format, total), open=True
            )
            for entry in log.entries:
                iid = self.tree.insert(parent, tk.END, values=(
                    entry.project, entry.description, duration_string(entry.duration_minutes)
                ))
                self.rows[iid] = entry

    def _new_entry_form(self) -> NewEntryForm:
        return NewEntryForm(
            entry_date=parse_day(self.form_state.entry_date.get()),
            project=self.form_state.project.get().strip(),
            description=self.form_state.description.get().strip(),
            duration=self.form_state.duration.get(),
        )

    def _update_add_button(self):
        try:
            valid = self._new_entry_form().is_valid
        except FormError:
            valid = False
        self.add_btn.state(["!disabled"] if valid else ["disabled"])

    # --- actions ---
    def on_add(self):
        try:
            entry_date, project, description, minutes = self._new_entry_form().validate()
        except FormError as ex:
            messagebox.showwarning("Invalid entry", str(ex))
            return
        warning = duration_warning(minutes, self.config_.max_minutes_per_entry)
        if warning:
            logger.warning("New entry %s", warning)
        self.store.add_entry(entry_date, project, description, minutes)
        self.form_state.project.set("")
        self.form_state.description.set("")
        self.form_state.duration.set("")

    def on_close(self):
        self.unsubscribe()
        self.master.destroy()

    def _selected_entry(self) -> TaskEntry | None:
        sel = self.tree.selection()
        if not sel:
            return None
        return self.rows.get(sel[0])

    def on_edit_selected(self):
        entry = self._selected_entry()
        if entry is None:
            return
        EditDialog(self.master, entry, on_save=self.store.update_entry)

    def on_delete(self):
        entry = self._selected_entry()
        if entry is None:
            return
        if messagebox.askyesno("Delete", "Delete the selected entry?"):
            self.store.delete_entry(entry)

    def on_export_csv(self):
        logs = self.store.logs
        if not logs:
            messagebox.showinfo("Nothing to export", "No entries logged yet.")
            return
        dest = filedialog.asksaveasfilename(
            title="Export CSV",
            defaultextension=".csv",
            filetypes=[("CSV", "*.csv"), ("All files", "*.*")],
            initialfile="timelog.csv",
        )
        if not dest:
            return
        try:
            with Path(dest).open("w", newline="", encoding="utf-8") as f:
                count = write_csv(logs, f)
        except OSError as ex:
            logger.exception("CSV export to %s failed", dest)
            messagebox.showerror("Export failed", str(ex))
            return
        messagebox.showinfo("Exported", f"Saved {count} entries to {dest}")


class EditDialog(tk.Toplevel):
    def __init__(self, master: tk.Tk, entry: TaskEntry, on_save: Callable[[TaskEntry], object]):
        super().__init__(master)
        self.title("Edit Entry")
        self.resizable(False, False)
        self.entry = entry
        self.on_save = on_save

        self.vars = {
            "project": tk.StringVar(value=entry.project),
            "description": tk.StringVar(value=entry.description),
            "duration": tk.StringVar(value=str(entry.duration_minutes)),
        }

        frm = ttk.Frame(self, padding=10)
        frm.pack(fill=tk.BOTH, expand=True)

        labels = (("Project Code", "project"), ("Subtask", "description"), ("Duration", "duration"))
        for row, (label, key) in enumerate(labels):
            ttk.Label(frm, text=label).grid(row=row, column=0, sticky=tk.W, padx=6, pady=6)
            ttk.Entry(frm, textvariable=self.vars[key]).grid(
                row=row, column=1, sticky=tk.EW, padx=6, pady=6
            )

        self.error_lbl = ttk.Label(frm, text="", foreground="red")
        self.error_lbl.grid(row=3, column=0, columnspan=2, sticky=tk.W, padx=6)

        btns = ttk.Frame(frm)
        btns.grid(row=4, column=0, columnspan=2, sticky=tk.E, pady=(8, 0))
        self.save_btn = ttk.Button(btns, text="Save", command=self.on_save_clicked)
        self.save_btn.pack(side=tk.RIGHT, padx=4)
        ttk.Button(btns, text="Cancel", command=self.destroy).pack(side=tk.RIGHT, padx=4)

        frm.columnconfigure(1, weight=1)
        for var in self.vars.values():
            var.trace_add("write", lambda *_: self._update_save_button())
        self.transient(master)
        self.grab_set()

    def _form(self) -> EditEntryForm:
        return EditEntryForm(
            entry=self.entry,
            project=self.vars["project"].get().strip(),
            description=self.vars["description"].get().strip(),
            duration=self.vars["duration"].get(),
        )

    def _update_save_button(self):
        self.save_btn.state(["!disabled"] if self._form().is_valid else ["disabled"])

    def on_save_clicked(self):
        try:
            updated = self._form().to_entry()
        except FormError as ex:
            self.error_lbl.configure(text=str(ex))
            return
        self.on_save(updated)
        self.destroy()


def run_gui(store: LogStore, config: Config) -> int:
    root = tk.Tk()
    style = ttk.Style()
    if "clam" in style.theme_names():
        style.theme_use("clam")

    app = TimeLogApp(root, store, config)
    app.pack(fill=tk.BOTH, expand=True)

    root.protocol("WM_DELETE_WINDOW", app.on_close)
    root.mainloop()
    return 0
